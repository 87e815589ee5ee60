"""SQLAlchemy models."""

from app.models.campaign import Campaign, CampaignList
from app.models.interaction import CampaignView, LinkClick
from app.models.link import Link
from app.models.mailing_list import MailingList, SubscriberList
from app.models.subscriber import Subscriber

__all__ = [
    "Subscriber",
    "MailingList",
    "SubscriberList",
    "Campaign",
    "CampaignList",
    "Link",
    "LinkClick",
    "CampaignView",
]
