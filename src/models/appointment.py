"""Appointment (viewing booking) models."""

from datetime import date
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from src.models.base import CamelModel
from src.models.listing import ListingSummary
from src.models.principal import UserSummary


class AppointmentStatus(str, Enum):
    """Booking status. ``rejected`` and ``cancelled`` are terminal."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED)


class Appointment(CamelModel):
    """Appointment as returned by the API, joined with listing and both parties."""
    id: str
    listing_id: str
    customer_id: str
    landlord_id: str
    appointment_date: str
    appointment_time: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    message: str = ""
    listing: Optional[ListingSummary] = None
    customer: Optional[UserSummary] = None
    landlord: Optional[UserSummary] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Appointment":
        listing = row.get("listing")
        customer = row.get("customer")
        landlord = row.get("landlord")
        return cls(
            id=row["id"],
            listing_id=row["listing_id"],
            customer_id=row["customer_id"],
            landlord_id=row["landlord_id"],
            appointment_date=str(row["appointment_date"]),
            appointment_time=row.get("appointment_time") or "",
            status=row.get("status") or AppointmentStatus.PENDING,
            message=row.get("message") or "",
            listing=ListingSummary.from_row(listing) if listing else None,
            customer=UserSummary(**customer) if customer else None,
            landlord=UserSummary(**landlord) if landlord else None,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class AppointmentCreate(CamelModel):
    """Body of POST /appointments."""
    model_config = ConfigDict(extra="ignore")

    # houseId is what the original web client sends
    listing_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("listingId", "houseId", "listing_id"),
    )
    appointment_date: date
    appointment_time: str = Field(..., min_length=1, max_length=20)
    message: str = Field(default="", max_length=2000)

    @field_validator("appointment_time")
    @classmethod
    def _strip_time(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("appointmentTime must not be blank")
        return value

    @field_validator("message", mode="before")
    @classmethod
    def _none_message(cls, value: Any) -> Any:
        return "" if value is None else value


class StatusUpdate(CamelModel):
    """Body of PUT /appointments/{id}/status."""
    status: AppointmentStatus
