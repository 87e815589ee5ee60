"""Public list subscription form handling."""

import logging

from jinja2 import TemplateError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings, settings
from app.exceptions import InternalError, InvalidInput
from app.models.mailing_list import (
    ListOptin,
    ListType,
    MailingList,
    SubscriberList,
    SubscriptionStatus,
)
from app.models.subscriber import Subscriber, SubscriberStatus
from app.schemas.messenger import OutboundMessage
from app.schemas.public import SubscriptionFormRequest
from app.services.campaign_service import build_optin_url
from app.services.ses_client import SESError, ses_client
from app.templating import i18n, render_notification
from app.utils.email_masking import mask_email

logger = logging.getLogger(__name__)


async def get_public_lists(db: AsyncSession) -> list[MailingList]:
    """
    Get all lists open to public sign-up.

    Args:
        db: Database session

    Returns:
        Public lists ordered by name

    Raises:
        InternalError: On store failure
    """
    try:
        result = await db.execute(
            select(MailingList)
            .where(MailingList.type == ListType.PUBLIC)
            .order_by(MailingList.name, MailingList.id)
        )
    except SQLAlchemyError as e:
        logger.error(f"Error fetching public lists: {e}")
        raise InternalError("public.errorFetchingLists") from e

    return list(result.scalars().all())


def initial_status(subscriber: Subscriber, mailing_list: MailingList) -> str:
    """Status a brand-new subscription starts in."""
    if subscriber.status == SubscriberStatus.BLOCKLISTED:
        return SubscriptionStatus.UNSUBSCRIBED
    if mailing_list.optin == ListOptin.DOUBLE:
        return SubscriptionStatus.UNCONFIRMED
    return SubscriptionStatus.CONFIRMED


async def subscribe(
    db: AsyncSession,
    privacy: PrivacySettings,
    form: SubscriptionFormRequest,
) -> bool:
    """
    Subscribe an e-mail address to public lists.

    An existing subscriber with the same e-mail is reused, and lists the
    subscriber already belongs to are left untouched.

    Args:
        db: Database session
        privacy: Privacy settings
        form: Validated subscription form

    Returns:
        True if at least one subscription awaits double opt-in confirmation

    Raises:
        FeatureDisabled: If the public subscription page is disabled
        InvalidInput: If none of the requested lists is public
        InternalError: On store failure
    """
    privacy.require("allow_public_subscription")

    try:
        result = await db.execute(
            select(MailingList).where(
                MailingList.uuid.in_(form.list_uuids),
                MailingList.type == ListType.PUBLIC,
            )
        )
        lists = list(result.scalars().all())
        if not lists:
            raise InvalidInput("public.noListsSelected")

        result = await db.execute(select(Subscriber).where(Subscriber.email == form.email))
        subscriber = result.scalar_one_or_none()
        if subscriber is None:
            subscriber = Subscriber(email=form.email, name=form.name, attribs={})
            db.add(subscriber)
            await db.flush()
            logger.info(f"Created subscriber {subscriber.uuid} ({mask_email(form.email)})")

        result = await db.execute(
            select(SubscriberList.list_id).where(SubscriberList.subscriber_id == subscriber.id)
        )
        existing = set(result.scalars().all())

        pending = []
        for mailing_list in lists:
            if mailing_list.id in existing:
                continue
            status = initial_status(subscriber, mailing_list)
            db.add(
                SubscriberList(
                    subscriber_id=subscriber.id,
                    list_id=mailing_list.id,
                    status=status,
                )
            )
            if status == SubscriptionStatus.UNCONFIRMED:
                pending.append(mailing_list)

        await db.flush()

    except IntegrityError as e:
        # Concurrent submission for the same address
        logger.warning(f"Race condition subscribing {mask_email(form.email)}: {e}")
        raise InternalError() from e
    except SQLAlchemyError as e:
        logger.error(f"Error subscribing {mask_email(form.email)}: {e}")
        raise InternalError() from e

    if pending:
        await send_optin_confirmation(subscriber, pending)

    return bool(pending)


async def send_optin_confirmation(subscriber: Subscriber, lists: list[MailingList]) -> bool:
    """
    E-mail the double opt-in confirmation link. Best-effort.

    Args:
        subscriber: Subscriber to notify
        lists: Lists awaiting confirmation

    Returns:
        True if the message was handed to the transport
    """
    optin_url = build_optin_url(subscriber.uuid, [ml.uuid for ml in lists])

    try:
        body = render_notification(
            "optin",
            {"subscriber": subscriber, "lists": lists, "optin_url": optin_url},
        )
        await ses_client.push(
            OutboundMessage(
                from_email=settings.FROM_EMAIL,
                to=[subscriber.email],
                subject=i18n.T("email.optin.confirmSubTitle"),
                body=body,
            )
        )
    except (SESError, TemplateError) as e:
        logger.error(f"Error sending opt-in e-mail to subscriber {subscriber.uuid}: {e}")
        return False

    logger.info(f"Opt-in e-mail sent to subscriber {subscriber.uuid}")
    return True
