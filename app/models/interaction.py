"""Campaign interaction events (link clicks and views)."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class LinkClick(Base):
    """
    A click on a tracked link.

    subscriber_id has no foreign key: wiping a subscriber leaves its click
    history in place, detached from any profile.
    """

    __tablename__ = "link_clicks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    campaign_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    link_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("links.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )

    # NULL when individual tracking is off
    subscriber_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LinkClick(id={self.id}, campaign_id={self.campaign_id}, link_id={self.link_id})>"


class CampaignView(Base):
    """An open of a campaign message, registered through the tracking pixel."""

    __tablename__ = "campaign_views"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    campaign_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("campaigns.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )

    # NULL when individual tracking is off; orphaned after a wipe
    subscriber_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CampaignView(id={self.id}, campaign_id={self.campaign_id})>"
