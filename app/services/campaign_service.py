"""Campaign message rendering for the "view in browser" page."""

import logging
from typing import Any
from uuid import UUID

from jinja2 import Environment, TemplateError
from markupsafe import Markup
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import InternalError
from app.models.campaign import Campaign
from app.models.link import Link
from app.models.subscriber import Subscriber
from app.services import identifier_service
from app.utils.html_processor import (
    find_tracked_urls,
    rewrite_tracked_links,
    tracking_pixel_tag,
)

logger = logging.getLogger(__name__)

# Bodies are admin-authored HTML; interpolated subscriber values are escaped
campaign_env = Environment(autoescape=True)


def build_link_url(link_uuid: UUID | str, campaign_uuid: UUID | str, subscriber_uuid: UUID | str) -> str:
    return f"{settings.APP_BASE_URL}/link/{link_uuid}/{campaign_uuid}/{subscriber_uuid}"


def build_view_url(campaign_uuid: UUID | str, subscriber_uuid: UUID | str) -> str:
    return f"{settings.APP_BASE_URL}/campaign/{campaign_uuid}/{subscriber_uuid}/px.png"


def build_unsubscribe_url(campaign_uuid: UUID | str, subscriber_uuid: UUID | str) -> str:
    return f"{settings.APP_BASE_URL}/subscription/{campaign_uuid}/{subscriber_uuid}"


def build_message_url(campaign_uuid: UUID | str, subscriber_uuid: UUID | str) -> str:
    return f"{settings.APP_BASE_URL}/campaign/{campaign_uuid}/{subscriber_uuid}"


def build_optin_url(subscriber_uuid: UUID | str, list_uuids: list[UUID] | None = None) -> str:
    url = f"{settings.APP_BASE_URL}/subscription/optin/{subscriber_uuid}"
    if list_uuids:
        url += "?" + "&".join(f"l={u}" for u in list_uuids)
    return url


async def register_links(db: AsyncSession, urls: list[str]) -> dict[str, UUID]:
    """
    Get or create tracked links for a set of URLs.

    Args:
        db: Database session
        urls: Destination URLs

    Returns:
        Mapping of destination URL to link UUID
    """
    if not urls:
        return {}

    result = await db.execute(select(Link).where(Link.url.in_(urls)))
    links = {link.url: link.uuid for link in result.scalars().all()}

    missing = [u for u in urls if u not in links]
    for url in missing:
        link = Link(url=url)
        db.add(link)
        await db.flush()
        links[url] = link.uuid

    if missing:
        logger.info(f"Registered {len(missing)} new tracked link(s)")

    return links


def template_funcs(
    campaign: Campaign,
    subscriber: Subscriber,
    links: dict[str, UUID],
) -> dict[str, Any]:
    """Functions available to campaign bodies."""

    def track_link(url: str) -> str:
        link_uuid = links.get(url)
        if link_uuid is None:
            return url
        return build_link_url(link_uuid, campaign.uuid, subscriber.uuid)

    return {
        "TrackLink": track_link,
        "TrackView": lambda: Markup(tracking_pixel_tag(build_view_url(campaign.uuid, subscriber.uuid))),
        "UnsubscribeURL": lambda: build_unsubscribe_url(campaign.uuid, subscriber.uuid),
        "MessageURL": lambda: build_message_url(campaign.uuid, subscriber.uuid),
        "OptinURL": lambda: build_optin_url(subscriber.uuid),
    }


async def render_campaign_message(
    db: AsyncSession,
    campaign_uuid: str,
    subscriber_uuid: str,
) -> str:
    """
    Render a campaign message the way a subscriber received it.

    Args:
        db: Database session
        campaign_uuid: Campaign UUID string
        subscriber_uuid: Subscriber UUID string

    Returns:
        Rendered HTML body

    Raises:
        NotFound / InvalidIdentifier: If campaign or subscriber cannot be resolved
        InternalError: On store or template failure
    """
    campaign = await identifier_service.get_campaign(db, campaign_uuid)
    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)

    try:
        links = await register_links(db, find_tracked_urls(campaign.body))
    except SQLAlchemyError as e:
        logger.error(f"Error registering links for campaign {campaign.uuid}: {e}")
        raise InternalError("public.errorFetchingCampaign") from e

    funcs = template_funcs(campaign, subscriber, links)

    try:
        template = campaign_env.from_string(campaign.body, globals=funcs)
        body = template.render(
            Campaign={"UUID": str(campaign.uuid), "Name": campaign.name, "Subject": campaign.subject},
            Subscriber={
                "UUID": str(subscriber.uuid),
                "Email": subscriber.email,
                "Name": subscriber.name,
                "FirstName": subscriber.name.split(" ")[0],
                "Attribs": subscriber.attribs or {},
            },
        )
    except TemplateError as e:
        logger.error(f"Error compiling template for campaign {campaign.uuid}: {e}")
        raise InternalError("public.errorFetchingCampaign") from e

    return rewrite_tracked_links(body, funcs["TrackLink"])
