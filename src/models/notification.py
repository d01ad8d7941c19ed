"""Notification models."""

from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import Field

from src.models.base import CamelModel


class NotificationType(str, Enum):
    """Closed set of notification kinds."""
    APPOINTMENT_REQUEST = "appointment_request"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    NEW_MESSAGE = "new_message"
    PROPERTY_VIEWED = "property_viewed"
    PROPERTY_LIKED = "property_liked"


class SenderSummary(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None


class RelatedListing(CamelModel):
    title: Optional[str] = None


class Notification(CamelModel):
    """Notification record. Only ``read`` is mutable, and only by the recipient."""
    id: str
    recipient_id: str
    sender_id: Optional[str] = None
    type: NotificationType
    title: str
    message: str
    related_listing_id: Optional[str] = None
    related_appointment_id: Optional[str] = None
    read: bool = False
    created_at: Optional[str] = None
    sender: Optional[SenderSummary] = None
    related_listing: Optional[RelatedListing] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Notification":
        sender = row.get("sender")
        related_listing = row.get("related_listing")
        return cls(
            id=row["id"],
            recipient_id=row["recipient_id"],
            sender_id=row.get("sender_id"),
            type=row["type"],
            title=row["title"],
            message=row["message"],
            related_listing_id=row.get("related_listing_id"),
            related_appointment_id=row.get("related_appointment_id"),
            read=bool(row.get("read", False)),
            created_at=row.get("created_at"),
            sender=SenderSummary(**sender) if sender else None,
            related_listing=RelatedListing(**related_listing) if related_listing else None,
        )


class UnreadCount(CamelModel):
    count: int = Field(..., ge=0)
