"""Partial e-mail masking for public pages and log lines."""


def _mask_part(part: str) -> str:
    if len(part) > 1:
        return part[0] + "***"
    return "***"


def mask_email(email: str) -> str:
    """
    Mask an e-mail address so the owner can recognize it but a third party
    holding a forwarded unsubscribe link cannot read it.

    The first character of the local part and of the domain name survive,
    as does the top-level domain.

    Examples:
        john@example.com        → j***@e***.com
        a@mail.example.org      → ***@m***.org
        ab@localhost            → a***@l***

    Args:
        email: Full e-mail address

    Returns:
        Masked e-mail address
    """
    if "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)

    host, dot, tld = domain.rpartition(".")
    if not dot:
        host, tld = domain, ""

    masked_domain = _mask_part(host) + (f".{tld}" if tld else "")
    return f"{_mask_part(local)}@{masked_domain}"
