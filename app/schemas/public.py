"""Typed request values for the public endpoints.

Each handler turns raw path/query/form strings into one of these values
before any business logic runs. Parsing failures raise InvalidInput.
"""

import re
from dataclasses import dataclass, field
from uuid import UUID

from app.exceptions import FeatureDisabled, InvalidInput
from app.utils.email_validator import sanitize_email

UUID_REGEX = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)

# Placeholder UUID used when rendering campaign previews
DUMMY_UUID = "00000000-0000-0000-0000-000000000000"

TRUTHY = frozenset({"1", "t", "T", "TRUE", "true", "True"})

NAME_MAX_LENGTH = 200


def parse_bool(value: str | None) -> bool:
    """Lenient form boolean: anything outside the truthy set is False."""
    return value is not None and value.strip() in TRUTHY


def is_uuid(value: str | None) -> bool:
    """Cheap syntactic check, done before any store lookup."""
    return bool(value) and UUID_REGEX.fullmatch(value) is not None


def parse_list_uuids(values: list[str]) -> list[UUID]:
    """
    Parse list UUIDs from a form or query string.

    Raises:
        InvalidInput: If any value is not a UUID
    """
    uuids = []
    for value in values:
        if not is_uuid(value):
            raise InvalidInput("globals.messages.invalidUUID")
        uuids.append(UUID(value))

    # Preserve order, drop duplicates
    return list(dict.fromkeys(uuids))


@dataclass(frozen=True)
class TrackingRequest:
    """Identifiers carried by a tracked link or view pixel."""

    campaign_uuid: str
    subscriber_uuid: str | None = None

    @property
    def is_preview(self) -> bool:
        """True for hits coming from template previews."""
        return DUMMY_UUID in (self.campaign_uuid, self.subscriber_uuid)

    def anonymized(self) -> "TrackingRequest":
        """Copy of this request without the subscriber reference."""
        return TrackingRequest(campaign_uuid=self.campaign_uuid)


@dataclass(frozen=True)
class UnsubscribeRequest:
    campaign_uuid: str
    subscriber_uuid: str
    blocklist: bool = False


def parse_unsubscribe_request(
    campaign_uuid: str,
    subscriber_uuid: str,
    blocklist: str | None,
) -> UnsubscribeRequest:
    return UnsubscribeRequest(
        campaign_uuid=campaign_uuid,
        subscriber_uuid=subscriber_uuid,
        blocklist=parse_bool(blocklist),
    )


@dataclass(frozen=True)
class OptinRequest:
    subscriber_uuid: str
    list_uuids: list[UUID] = field(default_factory=list)
    confirm: bool = False


def parse_optin_request(
    subscriber_uuid: str,
    list_uuids: list[str],
    confirm: str | None,
) -> OptinRequest:
    """
    Build an opt-in request.

    An empty list set targets every unconfirmed list of the subscriber.
    """
    return OptinRequest(
        subscriber_uuid=subscriber_uuid,
        list_uuids=parse_list_uuids(list_uuids),
        confirm=parse_bool(confirm),
    )


@dataclass(frozen=True)
class SubscriptionFormRequest:
    email: str
    name: str
    list_uuids: list[UUID]


def parse_subscription_form(
    email: str,
    name: str,
    list_uuids: list[str],
    nonce: str | None,
) -> SubscriptionFormRequest:
    """
    Validate a public subscription form submission.

    Raises:
        FeatureDisabled: If the honeypot field was filled (likely a bot)
        InvalidInput: On missing lists, bad e-mail or bad name
    """
    if nonce:
        raise FeatureDisabled()

    if not list_uuids:
        raise InvalidInput("public.noListsSelected")
    uuids = parse_list_uuids(list_uuids)

    normalized, _ = sanitize_email(email or "")
    if normalized is None:
        raise InvalidInput("subscribers.invalidEmail")

    # Fall back to the local part of the address
    name = (name or "").strip()
    if not name:
        name = normalized.split("@")[0]
    if len(name) > NAME_MAX_LENGTH:
        raise InvalidInput("subscribers.invalidName")

    return SubscriptionFormRequest(email=normalized, name=name, list_uuids=uuids)
