"""Outbound message schemas for the delivery transport."""

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """File attached to an outbound message."""

    name: str
    content: bytes
    content_type: str = "application/json"


class OutboundMessage(BaseModel):
    """A single e-mail handed to the delivery transport."""

    from_email: str
    to: list[str] = Field(..., min_length=1)
    subject: str
    body: str
    content_type: str = Field(default="html", description="html | plain")
    attachments: list[Attachment] = Field(default_factory=list)
