"""Campaign "view in browser" route."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_session
from app.services import campaign_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/campaign/{campaign_uuid}/{subscriber_uuid}", response_class=HTMLResponse)
async def view_campaign_message(
    campaign_uuid: str,
    subscriber_uuid: str,
    db: AsyncSession = Depends(get_session),
) -> HTMLResponse:
    """
    Render a campaign message in the browser.

    This is the page `MessageURL` links to from campaign e-mails. Tracked
    links and the view pixel inside it point at the same subscriber.
    """
    body = await campaign_service.render_campaign_message(db, campaign_uuid, subscriber_uuid)
    return HTMLResponse(content=body)
