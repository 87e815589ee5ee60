"""Tests for tracking service (views and clicks)."""

from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings
from app.exceptions import InvalidIdentifier, NotFound
from app.models.interaction import CampaignView, LinkClick
from app.schemas.public import DUMMY_UUID, TrackingRequest
from app.services.tracking_service import record_click, record_view


async def all_clicks(db: AsyncSession) -> list[LinkClick]:
    result = await db.execute(select(LinkClick))
    return list(result.scalars().all())


async def all_views(db: AsyncSession) -> list[CampaignView]:
    result = await db.execute(select(CampaignView))
    return list(result.scalars().all())


class TestRecordClick:
    async def test_records_and_returns_url(
        self, db: AsyncSession, privacy, make_link, make_campaign, make_subscriber
    ):
        link = await make_link("https://example.com/post")
        campaign = await make_campaign()
        subscriber = await make_subscriber()
        target = TrackingRequest(str(campaign.uuid), str(subscriber.uuid))

        url = await record_click(db, privacy, str(link.uuid), target)

        assert url == "https://example.com/post"
        clicks = await all_clicks(db)
        assert len(clicks) == 1
        assert clicks[0].link_id == link.id
        assert clicks[0].campaign_id == campaign.id
        assert clicks[0].subscriber_id == subscriber.id

    async def test_anonymous_when_individual_tracking_off(
        self, db: AsyncSession, make_link, make_campaign, make_subscriber
    ):
        privacy = PrivacySettings(individual_tracking=False)
        link = await make_link()
        campaign = await make_campaign()
        subscriber = await make_subscriber()

        await record_click(
            db, privacy, str(link.uuid), TrackingRequest(str(campaign.uuid), str(subscriber.uuid))
        )

        clicks = await all_clicks(db)
        assert len(clicks) == 1
        assert clicks[0].subscriber_id is None

    async def test_without_subscriber(self, db: AsyncSession, privacy, make_link, make_campaign):
        link = await make_link()
        campaign = await make_campaign()

        await record_click(db, privacy, str(link.uuid), TrackingRequest(str(campaign.uuid)))

        clicks = await all_clicks(db)
        assert len(clicks) == 1
        assert clicks[0].subscriber_id is None

    async def test_unknown_subscriber_recorded_anonymously(
        self, db: AsyncSession, privacy, make_link, make_campaign
    ):
        link = await make_link()
        campaign = await make_campaign()

        await record_click(
            db, privacy, str(link.uuid), TrackingRequest(str(campaign.uuid), str(uuid4()))
        )

        clicks = await all_clicks(db)
        assert [c.subscriber_id for c in clicks] == [None]

    @pytest.mark.parametrize("which", ["campaign", "subscriber"])
    async def test_preview_not_recorded(
        self, db: AsyncSession, privacy, make_link, make_campaign, make_subscriber, which
    ):
        link = await make_link()
        campaign = await make_campaign()
        subscriber = await make_subscriber()
        target = TrackingRequest(
            DUMMY_UUID if which == "campaign" else str(campaign.uuid),
            DUMMY_UUID if which == "subscriber" else str(subscriber.uuid),
        )

        url = await record_click(db, privacy, str(link.uuid), target)

        assert url == link.url
        assert await all_clicks(db) == []

    async def test_preview_not_recorded_when_individual_tracking_off(
        self, db: AsyncSession, make_link, make_campaign
    ):
        privacy = PrivacySettings(individual_tracking=False)
        link = await make_link()
        campaign = await make_campaign()

        url = await record_click(
            db, privacy, str(link.uuid), TrackingRequest(str(campaign.uuid), DUMMY_UUID)
        )

        assert url == link.url
        assert await all_clicks(db) == []

    async def test_unknown_campaign_still_redirects(self, db: AsyncSession, privacy, make_link):
        link = await make_link("https://example.com/x")

        url = await record_click(db, privacy, str(link.uuid), TrackingRequest(str(uuid4())))

        assert url == "https://example.com/x"
        assert await all_clicks(db) == []

    async def test_unknown_link(self, db: AsyncSession, privacy, make_campaign):
        campaign = await make_campaign()
        with pytest.raises(NotFound):
            await record_click(db, privacy, str(uuid4()), TrackingRequest(str(campaign.uuid)))

    async def test_malformed_link(self, db: AsyncSession, privacy):
        with pytest.raises(InvalidIdentifier):
            await record_click(db, privacy, "nope", TrackingRequest(str(uuid4())))

    async def test_write_failure_still_returns_url(
        self, db: AsyncSession, privacy, make_link, make_campaign
    ):
        link = await make_link("https://example.com/resilient")
        campaign = await make_campaign()

        with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
            url = await record_click(
                db, privacy, str(link.uuid), TrackingRequest(str(campaign.uuid))
            )

        assert url == "https://example.com/resilient"


class TestRecordView:
    async def test_records_view(self, db: AsyncSession, privacy, make_campaign, make_subscriber):
        campaign = await make_campaign()
        subscriber = await make_subscriber()

        result = await record_view(
            db, privacy, TrackingRequest(str(campaign.uuid), str(subscriber.uuid))
        )

        assert result is True
        views = await all_views(db)
        assert len(views) == 1
        assert views[0].campaign_id == campaign.id
        assert views[0].subscriber_id == subscriber.id

    async def test_anonymous_when_individual_tracking_off(
        self, db: AsyncSession, make_campaign, make_subscriber
    ):
        privacy = PrivacySettings(individual_tracking=False)
        campaign = await make_campaign()
        subscriber = await make_subscriber()

        await record_view(db, privacy, TrackingRequest(str(campaign.uuid), str(subscriber.uuid)))

        views = await all_views(db)
        assert [v.subscriber_id for v in views] == [None]

    async def test_preview_not_recorded(self, db: AsyncSession, privacy, make_campaign):
        campaign = await make_campaign()

        result = await record_view(db, privacy, TrackingRequest(str(campaign.uuid), DUMMY_UUID))

        assert result is False
        assert await all_views(db) == []

    async def test_preview_not_recorded_when_individual_tracking_off(self, db: AsyncSession, make_campaign):
        privacy = PrivacySettings(individual_tracking=False)
        campaign = await make_campaign()

        result = await record_view(db, privacy, TrackingRequest(str(campaign.uuid), DUMMY_UUID))

        assert result is False
        assert await all_views(db) == []

    async def test_unknown_campaign(self, db: AsyncSession, privacy):
        assert await record_view(db, privacy, TrackingRequest(str(uuid4()))) is False

    async def test_malformed_campaign(self, db: AsyncSession, privacy):
        assert await record_view(db, privacy, TrackingRequest("garbage", "more-garbage")) is False

    async def test_never_raises_on_store_failure(self, db: AsyncSession, privacy, make_campaign):
        campaign = await make_campaign()

        with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("boom"))):
            result = await record_view(db, privacy, TrackingRequest(str(campaign.uuid)))

        assert result is False

    async def test_never_raises_on_lookup_failure(self, db: AsyncSession, privacy):
        with patch.object(db, "execute", side_effect=OperationalError("SELECT", {}, Exception("boom"))):
            result = await record_view(db, privacy, TrackingRequest(str(uuid4())))

        assert result is False
