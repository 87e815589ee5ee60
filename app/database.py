"""Async engine and per-request sessions."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by subscriber, list, campaign and tracking tables."""

    pass


def _engine_options(url: str) -> dict[str, Any]:
    """Pool sizing only applies to server databases, not SQLite."""
    options: dict[str, Any] = {
        "echo": settings.LOG_LEVEL.upper() == "DEBUG",
        "pool_pre_ping": True,
    }
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Objects stay readable after commit: tracking writes commit mid-request
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency.

    Consent transitions (opt-in, unsubscribe, wipe, sign-up) are committed
    here once the handler returns, and rolled back if it raises any
    PublicError. Click and view writes commit on their own.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
