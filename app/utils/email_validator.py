"""Email validation utilities."""

import re
from typing import Tuple

# RFC 5322 simplified email regex
EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}"
    r"[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# Public form input cap, checked before any parsing
MAX_EMAIL_INPUT_LENGTH = 1000


def validate_email(email: str) -> Tuple[bool, str | None]:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
        If valid, error_message is None
    """
    if not email:
        return False, "Email address is required"

    email = email.strip()

    if len(email) > 254:
        return False, "Email address is too long (max 254 characters)"

    if not EMAIL_REGEX.match(email):
        return False, "Invalid email address format"

    # Check local part (before @)
    local, _, domain = email.partition("@")

    if len(local) > 64:
        return False, "Email local part is too long (max 64 characters)"

    if not domain:
        return False, "Email address must contain a domain"

    if len(domain) > 253:
        return False, "Email domain is too long (max 253 characters)"

    # Check for consecutive dots
    if ".." in email:
        return False, "Email address cannot contain consecutive dots"

    # Check domain has at least one dot
    if "." not in domain:
        return False, "Email domain must contain at least one dot"

    return True, None


def sanitize_email(email: str) -> Tuple[str | None, str | None]:
    """
    Normalize an email address for persistence.

    Trims whitespace, lower-cases and validates the address.

    Args:
        email: Raw email address from a form

    Returns:
        Tuple of (normalized_email, error_message)
        On failure normalized_email is None
    """
    if len(email) > MAX_EMAIL_INPUT_LENGTH:
        return None, "Email address is too long"

    email = email.strip().lower()
    is_valid, error_msg = validate_email(email)
    if not is_valid:
        return None, error_msg

    return email, None
