"""Mailing list and subscription models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ListType:
    PUBLIC = "public"
    PRIVATE = "private"


class ListOptin:
    SINGLE = "single"
    DOUBLE = "double"


class SubscriptionStatus:
    """Status of a subscriber's membership in one list."""

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    UNSUBSCRIBED = "unsubscribed"


class MailingList(Base):
    """Represents a mailing list."""

    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    uuid: Mapped[UUID] = mapped_column(
        Uuid,
        unique=True,
        index=True,
        nullable=False,
        default=uuid4,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # public | private
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=ListType.PRIVATE)

    # single | double
    optin: Mapped[str] = mapped_column(String(20), nullable=False, default=ListOptin.SINGLE)

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

    def __repr__(self) -> str:
        return f"<MailingList(id={self.id}, name={self.name}, type={self.type})>"


class SubscriberList(Base):
    """Membership of one subscriber in one list."""

    __tablename__ = "subscriber_lists"

    subscriber_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("subscribers.id", ondelete="CASCADE"),
        primary_key=True,
    )
    list_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lists.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    # unconfirmed | confirmed | unsubscribed
    status: Mapped[str] = mapped_column(
        String(20),
        index=True,
        nullable=False,
        default=SubscriptionStatus.UNCONFIRMED,
    )

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
    subscriber: Mapped["Subscriber"] = relationship("Subscriber", back_populates="subscriptions")
    mailing_list: Mapped["MailingList"] = relationship("MailingList")

    def __repr__(self) -> str:
        return (
            f"<SubscriberList(subscriber_id={self.subscriber_id}, "
            f"list_id={self.list_id}, status={self.status})>"
        )
