"""Subscriber model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Integer, String, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class SubscriberStatus:
    """Subscriber-level status values."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    BLOCKLISTED = "blocklisted"


class Subscriber(Base):
    """Represents a mailing list subscriber."""

    __tablename__ = "subscribers"

    # Internal key, never rendered on public pages
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Public opaque identifier
    uuid: Mapped[UUID] = mapped_column(
        Uuid,
        unique=True,
        index=True,
        nullable=False,
        default=uuid4,
    )

    # Profile
    email: Mapped[str] = mapped_column(String(1000), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    attribs: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=dict,
    )

    # enabled | disabled | blocklisted
    status: Mapped[str] = mapped_column(
        String(20),
        index=True,
        nullable=False,
        default=SubscriberStatus.ENABLED,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    subscriptions: Mapped[list["SubscriberList"]] = relationship(
        "SubscriberList",
        back_populates="subscriber",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Subscriber(id={self.id}, uuid={self.uuid}, status={self.status})>"
