"""Self-service subscriber data export."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings, settings
from app.exceptions import InternalError
from app.models.campaign import Campaign
from app.models.interaction import CampaignView, LinkClick
from app.models.link import Link
from app.models.mailing_list import ListType, MailingList, SubscriberList
from app.models.subscriber import Subscriber
from app.schemas.export import (
    CampaignViewExport,
    LinkClickExport,
    ProfileExport,
    SubscriberDataExport,
    SubscriptionExport,
)
from app.schemas.messenger import Attachment, OutboundMessage
from app.services import identifier_service
from app.services.ses_client import SESError, ses_client
from app.templating import i18n, render_notification
from app.utils.email_masking import mask_email

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "data.json"


async def _subscriptions(db: AsyncSession, subscriber: Subscriber) -> list[SubscriptionExport]:
    result = await db.execute(
        select(MailingList, SubscriberList)
        .join(SubscriberList, SubscriberList.list_id == MailingList.id)
        .where(SubscriberList.subscriber_id == subscriber.id)
        .order_by(MailingList.name, MailingList.id)
        .execution_options(populate_existing=True)
    )

    # Private list names belong to the list owner, not the subscriber
    return [
        SubscriptionExport(
            name=ml.name if ml.type == ListType.PUBLIC else i18n.T("public.privateList"),
            type=ml.type,
            subscription_status=sl.status,
            created_at=sl.created_at,
        )
        for ml, sl in result.all()
    ]


async def _campaign_views(db: AsyncSession, subscriber: Subscriber) -> list[CampaignViewExport]:
    result = await db.execute(
        select(Campaign.subject, Campaign.uuid, CampaignView.created_at)
        .outerjoin(Campaign, Campaign.id == CampaignView.campaign_id)
        .where(CampaignView.subscriber_id == subscriber.id)
        .order_by(CampaignView.created_at, CampaignView.id)
    )
    return [
        CampaignViewExport(subject=subject, campaign=uuid, created_at=created_at)
        for subject, uuid, created_at in result.all()
    ]


async def _link_clicks(db: AsyncSession, subscriber: Subscriber) -> list[LinkClickExport]:
    result = await db.execute(
        select(Link.url, Campaign.subject, Campaign.uuid, LinkClick.created_at)
        .join(Link, Link.id == LinkClick.link_id)
        .outerjoin(Campaign, Campaign.id == LinkClick.campaign_id)
        .where(LinkClick.subscriber_id == subscriber.id)
        .order_by(LinkClick.created_at, LinkClick.id)
    )
    return [
        LinkClickExport(url=url, subject=subject, campaign=uuid, created_at=created_at)
        for url, subject, uuid, created_at in result.all()
    ]


async def export_subscriber_data(
    db: AsyncSession,
    privacy: PrivacySettings,
    subscriber_uuid: str,
) -> SubscriberDataExport:
    """
    Collect a subscriber's profile, subscriptions, views and clicks.

    Only the sections in the configured exportable allow-list are filled.

    Args:
        db: Database session
        privacy: Privacy settings
        subscriber_uuid: Subscriber UUID string

    Returns:
        Export document

    Raises:
        NotFound / InvalidIdentifier: If the subscriber cannot be resolved
        InternalError: On store failure
    """
    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)
    data = SubscriberDataExport(email=subscriber.email)

    try:
        if "profile" in privacy.exportable:
            data.profile = [ProfileExport.model_validate(subscriber)]
        if "subscriptions" in privacy.exportable:
            data.subscriptions = await _subscriptions(db, subscriber)
        if "campaign_views" in privacy.exportable:
            data.campaign_views = await _campaign_views(db, subscriber)
        if "link_clicks" in privacy.exportable:
            data.link_clicks = await _link_clicks(db, subscriber)
    except SQLAlchemyError as e:
        logger.error(f"Error exporting data for subscriber {subscriber.uuid}: {e}")
        raise InternalError() from e

    return data


async def send_subscriber_data(
    db: AsyncSession,
    privacy: PrivacySettings,
    subscriber_uuid: str,
) -> None:
    """
    E-mail a subscriber their data as a JSON attachment.

    The request only dispatches the message; the data never appears in the
    HTTP response.

    Args:
        db: Database session
        privacy: Privacy settings
        subscriber_uuid: Subscriber UUID string

    Raises:
        FeatureDisabled: If export is disabled
        NotFound / InvalidIdentifier: If the subscriber cannot be resolved
        InternalError: On store, template or transport failure
    """
    privacy.require("allow_export")

    data = await export_subscriber_data(db, privacy, subscriber_uuid)

    try:
        body = render_notification("subscriber-data", {"data": data})
    except Exception as e:
        logger.error(f"Error compiling notification template 'subscriber-data': {e}")
        raise InternalError() from e

    message = OutboundMessage(
        from_email=settings.FROM_EMAIL,
        to=[data.email],
        subject=i18n.T("email.data.title"),
        body=body,
        attachments=[Attachment(name=EXPORT_FILENAME, content=data.to_json_bytes())],
    )

    try:
        await ses_client.push(message)
    except SESError as e:
        logger.error(f"Error e-mailing data to subscriber {subscriber_uuid}: {e}")
        raise InternalError() from e

    logger.info(f"Data export sent to {mask_email(data.email)}")
