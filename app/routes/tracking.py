"""Tracking routes for campaign link clicks and views."""

import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings
from app.database import get_session
from app.dependencies import get_privacy
from app.schemas.public import TrackingRequest
from app.services import tracking_service
from app.utils.html_processor import TRACKING_PIXEL_PNG

logger = logging.getLogger(__name__)

router = APIRouter()

PIXEL_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/link/{link_uuid}/{campaign_uuid}/{subscriber_uuid}")
@router.get("/link/{link_uuid}/{campaign_uuid}")
async def link_redirect(
    link_uuid: str,
    campaign_uuid: str,
    subscriber_uuid: str | None = None,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> RedirectResponse:
    """
    Record a tracked link click and redirect to the destination.

    These URLs are produced by `TrackLink` in campaign bodies.

    **Behavior:**
    - Valid link: click recorded (best effort), 307 redirect to the destination
    - Unknown or malformed link UUID: not-found page (there is nowhere to redirect to)
    - Individual tracking disabled: click recorded without the subscriber
    - Preview UUID (all zeros): redirect only, nothing recorded

    **Example:**
    ```
    GET /link/5e1b.../9c2d.../a41f...
    → 307 Location: https://example.com/article
    ```
    """
    target = TrackingRequest(campaign_uuid=campaign_uuid, subscriber_uuid=subscriber_uuid)
    url = await tracking_service.record_click(db, privacy, link_uuid, target)

    return RedirectResponse(url=url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/campaign/{campaign_uuid}/{subscriber_uuid}/px.png")
@router.get("/campaign/{campaign_uuid}/px.png")
async def register_view(
    campaign_uuid: str,
    subscriber_uuid: str | None = None,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> Response:
    """
    Register a campaign view and return a transparent tracking pixel.

    The pixel URL is produced by `TrackView` in campaign bodies.

    **Response:**
    - Always 200 with a 1x1 transparent PNG, whatever happened while
      recording the view
    - `Cache-Control: no-cache` so every open reaches the server
    """
    target = TrackingRequest(campaign_uuid=campaign_uuid, subscriber_uuid=subscriber_uuid)

    try:
        await tracking_service.record_view(db, privacy, target)
    except Exception as e:
        logger.error(f"Error in view tracking for campaign {campaign_uuid}: {str(e)}")

    # Always return the tracking pixel
    return Response(
        content=TRACKING_PIXEL_PNG,
        media_type="image/png",
        headers=PIXEL_HEADERS,
    )
