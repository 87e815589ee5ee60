"""Resolution of opaque public UUIDs to stored entities.

Malformed UUIDs are rejected before touching the store. A malformed and an
absent identifier of the same kind raise errors that render identically, so
responses never reveal whether an entity exists.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InternalError, InvalidIdentifier, NotFound
from app.models.campaign import Campaign
from app.models.link import Link
from app.models.mailing_list import MailingList
from app.models.subscriber import Subscriber
from app.schemas.public import is_uuid

logger = logging.getLogger(__name__)

# Entity kind -> (model, not-found message key)
KINDS: dict[str, tuple[type, str]] = {
    "campaign": (Campaign, "public.campaignNotFound"),
    "subscriber": (Subscriber, "public.notFound"),
    "link": (Link, "public.invalidLink"),
    "list": (MailingList, "public.notFound"),
}


def parse_uuid(kind: str, value: str | UUID) -> UUID:
    """
    Validate the syntax of a public identifier.

    Args:
        kind: Entity kind ("campaign", "subscriber", "link", "list")
        value: UUID string or UUID

    Returns:
        Parsed UUID

    Raises:
        InvalidIdentifier: If the value is not a canonical UUID
    """
    if isinstance(value, UUID):
        return value

    if not is_uuid(value):
        logger.debug(f"Malformed {kind} UUID rejected")
        raise InvalidIdentifier(KINDS[kind][1])

    return UUID(value)


async def find(db: AsyncSession, kind: str, value: str | UUID | None):
    """
    Look up an entity by UUID.

    Args:
        db: Database session
        kind: Entity kind
        value: UUID string, UUID or None

    Returns:
        Entity if found, None if the value is empty, malformed or absent

    Raises:
        InternalError: On store failure
    """
    if not value:
        return None

    try:
        uuid = parse_uuid(kind, value)
    except InvalidIdentifier:
        return None

    model = KINDS[kind][0]
    try:
        result = await db.execute(select(model).where(model.uuid == uuid))
    except SQLAlchemyError as e:
        logger.error(f"Error fetching {kind} {uuid}: {e}")
        raise InternalError() from e

    return result.scalar_one_or_none()


async def resolve(db: AsyncSession, kind: str, value: str | UUID):
    """
    Look up an entity by UUID, failing if it cannot be resolved.

    Args:
        db: Database session
        kind: Entity kind
        value: UUID string or UUID

    Returns:
        The entity

    Raises:
        InvalidIdentifier: If the UUID is malformed
        NotFound: If no entity has this UUID
        InternalError: On store failure
    """
    uuid = parse_uuid(kind, value)

    entity = await find(db, kind, uuid)
    if entity is None:
        logger.info(f"{kind.capitalize()} not found: {uuid}")
        raise NotFound(KINDS[kind][1])

    return entity


async def get_campaign(db: AsyncSession, campaign_uuid: str | UUID) -> Campaign:
    return await resolve(db, "campaign", campaign_uuid)


async def get_subscriber(db: AsyncSession, subscriber_uuid: str | UUID) -> Subscriber:
    return await resolve(db, "subscriber", subscriber_uuid)


async def get_link(db: AsyncSession, link_uuid: str | UUID) -> Link:
    return await resolve(db, "link", link_uuid)
