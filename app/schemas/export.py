"""Subscriber data export document."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProfileExport(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uuid: UUID
    email: str
    name: str
    attribs: dict[str, Any]
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubscriptionExport(BaseModel):
    name: str
    type: str
    subscription_status: str
    created_at: datetime | None = None


class CampaignViewExport(BaseModel):
    subject: str | None = None
    campaign: UUID | None = None
    created_at: datetime | None = None


class LinkClickExport(BaseModel):
    url: str
    subject: str | None = None
    campaign: UUID | None = None
    created_at: datetime | None = None


class SubscriberDataExport(BaseModel):
    """
    Everything recorded on one subscriber.

    Sections outside the configured allow-list are left as None and dropped
    from the serialized document.
    """

    email: str
    profile: list[ProfileExport] | None = None
    subscriptions: list[SubscriptionExport] | None = None
    campaign_views: list[CampaignViewExport] | None = None
    link_clicks: list[LinkClickExport] | None = None

    def to_json_bytes(self) -> bytes:
        """Serialize the attachment payload (e-mail address excluded)."""
        return self.model_dump_json(
            indent=2,
            exclude={"email"},
            exclude_none=True,
        ).encode("utf-8")
