"""Subscriber consent transitions: opt-in confirmation, unsubscribe and wipe.

Per-list statuses move unconfirmed -> confirmed (never back) and anything ->
unsubscribed. Blocklisting is a subscriber-level flag on top of that. Every
transition is a single UPDATE/DELETE statement in the request transaction,
so concurrent requests cannot interleave partial state.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings
from app.exceptions import InternalError, NoPendingAction
from app.models.campaign import CampaignList
from app.models.mailing_list import MailingList, SubscriberList, SubscriptionStatus
from app.models.subscriber import Subscriber, SubscriberStatus
from app.services import identifier_service

logger = logging.getLogger(__name__)


async def get_subscriber_lists(
    db: AsyncSession,
    subscriber: Subscriber,
    list_uuids: list[UUID] | None = None,
    status: str | None = None,
) -> list[tuple[MailingList, SubscriberList]]:
    """
    Get a subscriber's lists with their subscription rows.

    Args:
        db: Database session
        subscriber: Subscriber
        list_uuids: Optional list filter (empty or None means all lists)
        status: Optional subscription status filter

    Returns:
        List of (MailingList, SubscriberList) tuples ordered by list name
    """
    query = (
        select(MailingList, SubscriberList)
        .join(SubscriberList, SubscriberList.list_id == MailingList.id)
        .where(SubscriberList.subscriber_id == subscriber.id)
    )

    if list_uuids:
        query = query.where(MailingList.uuid.in_(list_uuids))
    if status:
        query = query.where(SubscriberList.status == status)

    try:
        result = await db.execute(query.order_by(MailingList.name, MailingList.id))
    except SQLAlchemyError as e:
        logger.error(f"Error fetching lists for subscriber {subscriber.uuid}: {e}")
        raise InternalError("public.errorFetchingLists") from e

    return [(ml, sl) for ml, sl in result.all()]


async def get_pending_lists(
    db: AsyncSession,
    subscriber_uuid: str,
    list_uuids: list[UUID],
) -> tuple[Subscriber, list[MailingList]]:
    """
    Get the lists a subscriber has yet to confirm.

    Args:
        db: Database session
        subscriber_uuid: Subscriber UUID string
        list_uuids: Lists to consider (empty means every unconfirmed list)

    Returns:
        Tuple of (subscriber, unconfirmed lists)

    Raises:
        NotFound / InvalidIdentifier: If the subscriber cannot be resolved
        NoPendingAction: If there is nothing to confirm
    """
    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)

    rows = await get_subscriber_lists(
        db,
        subscriber,
        list_uuids=list_uuids,
        status=SubscriptionStatus.UNCONFIRMED,
    )
    if not rows:
        logger.info(f"No pending opt-in for subscriber {subscriber.uuid}")
        raise NoPendingAction()

    return subscriber, [ml for ml, _ in rows]


async def confirm_optin(
    db: AsyncSession,
    subscriber_uuid: str,
    list_uuids: list[UUID],
) -> list[MailingList]:
    """
    Confirm a subscriber's unconfirmed subscriptions.

    Idempotent: once everything targeted is confirmed, further calls raise
    NoPendingAction and leave storage untouched.

    Args:
        db: Database session
        subscriber_uuid: Subscriber UUID string
        list_uuids: Lists to confirm (empty means every unconfirmed list)

    Returns:
        Lists that were confirmed

    Raises:
        NotFound / InvalidIdentifier: If the subscriber cannot be resolved
        NoPendingAction: If there is nothing to confirm
        InternalError: On store failure
    """
    subscriber, pending = await get_pending_lists(db, subscriber_uuid, list_uuids)

    # The status guard makes a concurrent confirmation of the same rows a no-op
    stmt = (
        update(SubscriberList)
        .where(
            SubscriberList.subscriber_id == subscriber.id,
            SubscriberList.list_id.in_([ml.id for ml in pending]),
            SubscriberList.status == SubscriptionStatus.UNCONFIRMED,
        )
        .values(status=SubscriptionStatus.CONFIRMED, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )

    try:
        result = await db.execute(stmt)
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Error confirming opt-in for subscriber {subscriber.uuid}: {e}")
        raise InternalError() from e

    if result.rowcount == 0:
        logger.info(f"Opt-in for subscriber {subscriber.uuid} already confirmed")
        raise NoPendingAction()

    logger.info(f"Confirmed {result.rowcount} subscription(s) for subscriber {subscriber.uuid}")
    return pending


async def unsubscribe_by_campaign(
    db: AsyncSession,
    privacy: PrivacySettings,
    subscriber_uuid: str,
    campaign_uuid: str,
    blocklist: bool = False,
) -> bool:
    """
    Unsubscribe a subscriber from the lists a campaign was sent to.

    With blocklist (and blocklisting allowed), the subscriber is also
    blocklisted and unsubscribed from every list. A blocklist request while
    blocklisting is disabled is silently downgraded to a plain unsubscribe.
    Repeated calls are a no-op success.

    Args:
        db: Database session
        privacy: Privacy settings
        subscriber_uuid: Subscriber UUID string
        campaign_uuid: Campaign UUID string
        blocklist: Whether the subscriber asked to be blocklisted

    Returns:
        Whether the subscriber was blocklisted

    Raises:
        NotFound / InvalidIdentifier: If campaign or subscriber cannot be resolved
        InternalError: On store failure
    """
    if blocklist and not privacy.allow_blocklist:
        logger.info("Blocklisting disabled, downgrading to unsubscribe")
        blocklist = False

    campaign = await identifier_service.get_campaign(db, campaign_uuid)
    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)

    stmt = (
        update(SubscriberList)
        .where(
            SubscriberList.subscriber_id == subscriber.id,
            SubscriberList.status != SubscriptionStatus.UNSUBSCRIBED,
        )
        .values(status=SubscriptionStatus.UNSUBSCRIBED, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    if not blocklist:
        campaign_lists = select(CampaignList.list_id).where(
            CampaignList.campaign_id == campaign.id
        )
        stmt = stmt.where(SubscriberList.list_id.in_(campaign_lists))

    try:
        if blocklist:
            await db.execute(
                update(Subscriber)
                .where(Subscriber.id == subscriber.id)
                .values(status=SubscriberStatus.BLOCKLISTED, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        result = await db.execute(stmt)
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(
            f"Error unsubscribing subscriber {subscriber.uuid} "
            f"(campaign {campaign.uuid}): {e}"
        )
        raise InternalError() from e

    logger.info(
        f"Unsubscribed subscriber {subscriber.uuid} from {result.rowcount} list(s) "
        f"via campaign {campaign.uuid} (blocklist={blocklist})"
    )
    return blocklist


async def wipe_subscriber(
    db: AsyncSession,
    privacy: PrivacySettings,
    subscriber_uuid: str,
) -> None:
    """
    Delete a subscriber's profile and subscriptions.

    Link clicks and campaign views are kept as anonymous history. Not
    reversible; a second call raises NotFound.

    Args:
        db: Database session
        privacy: Privacy settings
        subscriber_uuid: Subscriber UUID string

    Raises:
        FeatureDisabled: If wiping is disabled
        NotFound / InvalidIdentifier: If the subscriber cannot be resolved
        InternalError: On store failure
    """
    privacy.require("allow_wipe")

    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)
    subscriber_id, uuid = subscriber.id, subscriber.uuid

    try:
        await db.execute(
            delete(SubscriberList)
            .where(SubscriberList.subscriber_id == subscriber_id)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Subscriber)
            .where(Subscriber.id == subscriber_id)
            .execution_options(synchronize_session=False)
        )
        await db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Error wiping subscriber {uuid}: {e}")
        raise InternalError() from e

    # Drop the stale instance so later lookups in this session hit the store
    db.expunge(subscriber)

    logger.info(f"Wiped subscriber {uuid}")
