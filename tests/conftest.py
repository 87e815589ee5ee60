"""Test fixtures for the listmail public service test suite."""

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables BEFORE importing app modules
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "AWS_ACCESS_KEY_ID": "test-key-id",
    "AWS_SECRET_ACCESS_KEY": "test-secret-key",
    "AWS_REGION": "us-east-1",
    "APP_BASE_URL": "http://localhost:8000",
    "FROM_EMAIL": "listmail <noreply@test.example.com>",
    "ENVIRONMENT": "test",
    "LOG_LEVEL": "WARNING",
})

from app.config import PrivacySettings  # noqa: E402
from app.database import Base, get_session  # noqa: E402
from app.dependencies import get_privacy  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models.campaign import Campaign, CampaignList  # noqa: E402
from app.models.link import Link  # noqa: E402
from app.models.mailing_list import (  # noqa: E402
    ListOptin,
    ListType,
    MailingList,
    SubscriberList,
    SubscriptionStatus,
)
from app.models.subscriber import Subscriber  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session
        await session.rollback()
    await engine.dispose()


@pytest.fixture
def privacy() -> PrivacySettings:
    """Every privacy feature enabled, individual tracking on."""
    return PrivacySettings(
        individual_tracking=True,
        allow_blocklist=True,
        allow_export=True,
        allow_wipe=True,
        allow_public_subscription=True,
    )


@pytest.fixture
def mock_ses_client():
    """Mock the SES client to avoid real AWS calls."""
    mock = AsyncMock()
    mock.push.return_value = "test-ses-message-id-123"
    with patch("app.services.export_service.ses_client", mock), \
            patch("app.services.subscription_service.ses_client", mock):
        yield mock


@pytest.fixture
async def client(
    db: AsyncSession,
    privacy: PrivacySettings,
    mock_ses_client,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with database session and privacy overrides."""
    app = create_app()

    async def override_get_session():
        yield db

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_privacy] = lambda: privacy

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_subscriber(db: AsyncSession):
    """Factory for subscribers, refreshed so server defaults are loaded."""

    async def _make(**kwargs) -> Subscriber:
        defaults = {
            "uuid": uuid4(),
            "email": f"sub-{uuid4().hex[:8]}@example.com",
            "name": "Test Subscriber",
            "attribs": {"city": "Bengaluru"},
            "status": "enabled",
        }
        defaults.update(kwargs)
        subscriber = Subscriber(**defaults)
        db.add(subscriber)
        await db.flush()
        await db.refresh(subscriber)
        return subscriber

    return _make


@pytest.fixture
def make_list(db: AsyncSession):
    """Factory for mailing lists."""

    async def _make(**kwargs) -> MailingList:
        defaults = {
            "uuid": uuid4(),
            "name": f"List {uuid4().hex[:6]}",
            "type": ListType.PUBLIC,
            "optin": ListOptin.DOUBLE,
        }
        defaults.update(kwargs)
        mailing_list = MailingList(**defaults)
        db.add(mailing_list)
        await db.flush()
        await db.refresh(mailing_list)
        return mailing_list

    return _make


@pytest.fixture
def subscribe_to(db: AsyncSession):
    """Attach a subscriber to a list with a given status."""

    async def _subscribe(
        subscriber: Subscriber,
        mailing_list: MailingList,
        status: str = SubscriptionStatus.UNCONFIRMED,
    ) -> SubscriberList:
        row = SubscriberList(
            subscriber_id=subscriber.id,
            list_id=mailing_list.id,
            status=status,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row

    return _subscribe


@pytest.fixture
def make_campaign(db: AsyncSession):
    """Factory for campaigns, sent to the given lists."""

    async def _make(lists: list[MailingList] | None = None, **kwargs) -> Campaign:
        defaults = {
            "uuid": uuid4(),
            "name": "Test Campaign",
            "subject": "Hello subscribers",
            "from_email": "news@test.example.com",
            "body": "<p>Hello {{ Subscriber.Name }}</p>",
            "status": "finished",
        }
        defaults.update(kwargs)
        campaign = Campaign(**defaults)
        db.add(campaign)
        await db.flush()
        for mailing_list in lists or []:
            db.add(CampaignList(campaign_id=campaign.id, list_id=mailing_list.id))
        await db.flush()
        await db.refresh(campaign)
        return campaign

    return _make


@pytest.fixture
def make_link(db: AsyncSession):
    """Factory for tracked links."""

    async def _make(url: str = "https://example.com/article") -> Link:
        link = Link(uuid=uuid4(), url=url)
        db.add(link)
        await db.flush()
        await db.refresh(link)
        return link

    return _make
