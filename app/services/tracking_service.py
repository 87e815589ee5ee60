"""Tracking service for campaign link clicks and views."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings
from app.models.interaction import CampaignView, LinkClick
from app.schemas.public import TrackingRequest
from app.services import identifier_service

logger = logging.getLogger(__name__)


async def record_click(
    db: AsyncSession,
    privacy: PrivacySettings,
    link_uuid: str,
    target: TrackingRequest,
) -> str:
    """
    Resolve a tracked link and record the click.

    Resolving the link is mandatory: without it there is nowhere to
    redirect to. Recording the click is best-effort and its failures are
    only logged. Preview hits are never recorded.

    Args:
        db: Database session
        privacy: Privacy settings
        link_uuid: Link UUID string
        target: Campaign and (optional) subscriber the link was sent to

    Returns:
        Destination URL

    Raises:
        NotFound / InvalidIdentifier: If the link cannot be resolved
        InternalError: If the link lookup itself fails
    """
    link = await identifier_service.get_link(db, link_uuid)
    url, link_id = link.url, link.id

    if target.is_preview:
        logger.debug(f"Skipping click registration for preview of link {link.uuid}")
        return url

    if not privacy.individual_tracking:
        target = target.anonymized()

    try:
        campaign = await identifier_service.find(db, "campaign", target.campaign_uuid)
        if campaign is None:
            logger.warning(f"Click on link {link.uuid} for unknown campaign, not recorded")
            return url

        subscriber = await identifier_service.find(db, "subscriber", target.subscriber_uuid)

        db.add(
            LinkClick(
                campaign_id=campaign.id,
                link_id=link_id,
                subscriber_id=subscriber.id if subscriber else None,
            )
        )
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to record click for link {link_uuid}: {e}")
        await db.rollback()
        return url

    logger.info(f"Recorded click on link {link_uuid} for campaign {target.campaign_uuid}")
    return url


async def record_view(
    db: AsyncSession,
    privacy: PrivacySettings,
    target: TrackingRequest,
) -> bool:
    """
    Record a campaign view from the tracking pixel.

    Never raises: the pixel is served whatever happens here.

    Args:
        db: Database session
        privacy: Privacy settings
        target: Campaign and (optional) subscriber the pixel was sent to

    Returns:
        True if the view was recorded, False otherwise
    """
    if target.is_preview:
        return False

    if not privacy.individual_tracking:
        target = target.anonymized()

    try:
        campaign = await identifier_service.find(db, "campaign", target.campaign_uuid)
        if campaign is None:
            logger.debug("View for unknown campaign, not recorded")
            return False

        subscriber = await identifier_service.find(db, "subscriber", target.subscriber_uuid)

        db.add(
            CampaignView(
                campaign_id=campaign.id,
                subscriber_id=subscriber.id if subscriber else None,
            )
        )
        await db.commit()
    except Exception as e:
        logger.error(f"Error registering campaign view for {target.campaign_uuid}: {e}")
        try:
            await db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback after failed view registration failed: {rollback_error}")
        return False

    return True
