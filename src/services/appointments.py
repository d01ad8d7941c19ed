"""Appointment lifecycle: booking, status transitions, cancellation.

Status machine::

    (create) -> pending
    pending  -> confirmed | rejected    landlord of the appointment only
    pending | confirmed -> cancelled    customer or landlord of the appointment
    cancelled -> cancelled              no-op, nothing written or sent

``rejected`` and ``cancelled`` are terminal. Every status write is a
compare-and-set on the status that was read, so two racing transitions can't
both succeed.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from src.models.appointment import Appointment, AppointmentCreate, AppointmentStatus, StatusUpdate
from src.models.base import describe_validation_error
from src.models.notification import NotificationType
from src.models.principal import Principal, Role
from src.services.authorization import require_ownership, require_role
from src.services.notifications import NotificationEmitter
from src.utils.errors import InvalidInputError, NotFoundError
from src.utils.ids import generate_id
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

LANDLORD_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.CANCELLED}),
}

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _listing_title(row: dict) -> str:
    listing = row.get("listing") or {}
    return listing.get("title") or "the property"


def _party_name(row: dict, party: str) -> str:
    person = row.get(party) or {}
    return person.get("name") or party.capitalize()


class AppointmentLifecycle:
    """Owns the appointment state machine and who may drive each transition."""

    def __init__(self, store, emitter: NotificationEmitter):
        self.store = store
        self.emitter = emitter

    async def _load(self, appointment_id: str) -> dict:
        row = await self.store.get_appointment(appointment_id)
        if not row:
            raise NotFoundError("Appointment not found")
        return row

    async def _write_status(self, row: dict, target: AppointmentStatus) -> dict:
        updated = await self.store.update_appointment_status(
            row["id"],
            target.value,
            expected_status=row["status"],
            updated_at=_now(),
        )
        if updated is None:
            raise InvalidInputError("Appointment was changed by someone else, reload and try again")

        logger.info(
            "Appointment status changed",
            appointment_id=row["id"],
            from_status=row["status"],
            to_status=target.value
        )
        return updated

    async def create(self, principal: Principal, payload: AppointmentCreate) -> dict:
        """Book a viewing. The landlord is frozen from the listing's current owner."""
        require_role(principal, Role.CUSTOMER, "Only customers can book appointments")

        listing = await self.store.get_listing(payload.listing_id)
        if not listing:
            raise NotFoundError("Listing not found")

        landlord_id = listing["owner_id"]
        if not await self.store.get_user(landlord_id):
            raise NotFoundError("Landlord not found")

        now = _now()
        row = {
            "id": generate_id(),
            "listing_id": payload.listing_id,
            "customer_id": principal.id,
            "landlord_id": landlord_id,
            "appointment_date": payload.appointment_date.isoformat(),
            "appointment_time": payload.appointment_time,
            "status": AppointmentStatus.PENDING.value,
            "message": payload.message,
            "created_at": now,
            "updated_at": now,
        }
        created = await self.store.insert_appointment(row)

        logger.info(
            "Appointment booked",
            appointment_id=row["id"],
            listing_id=payload.listing_id,
            customer_id=mask_user_id(principal.id),
            landlord_id=mask_user_id(landlord_id)
        )

        self.emitter.dispatch(
            landlord_id,
            NotificationType.APPOINTMENT_REQUEST,
            "New viewing request",
            f"{principal.name or 'A customer'} requested a viewing of "
            f"{listing.get('title') or 'your property'} on {row['appointment_date']} at {row['appointment_time']}",
            sender_id=principal.id,
            listing_id=payload.listing_id,
            appointment_id=row["id"],
        )
        return Appointment.from_row(created).to_api()

    async def list_mine(self, principal: Principal) -> list[dict]:
        """Customer: own bookings. Landlord: bookings received. Newest date first."""
        if principal.is_landlord:
            rows = await self.store.appointments_for_landlord(principal.id)
        else:
            rows = await self.store.appointments_for_customer(principal.id)
        return [Appointment.from_row(row).to_api() for row in rows]

    async def get(self, principal: Principal, appointment_id: str) -> dict:
        row = await self._load(appointment_id)
        require_ownership(principal, (row["customer_id"], row["landlord_id"]))
        return Appointment.from_row(row).to_api()

    async def update_status(self, principal: Principal, appointment_id: str, status: Any) -> dict:
        """Landlord-driven transition. Customers are refused before any lookup,
        and the requested status is only validated once ownership is settled."""
        require_role(principal, Role.LANDLORD, "Only the landlord can update appointment status")

        row = await self._load(appointment_id)
        require_ownership(principal, (row["landlord_id"],))

        try:
            target = StatusUpdate(status=status).status
        except ValidationError as e:
            raise InvalidInputError(describe_validation_error(e))

        if target == AppointmentStatus.CANCELLED:
            return await self._cancel(principal, row)

        current = AppointmentStatus(row["status"])
        if target not in LANDLORD_TRANSITIONS.get(current, frozenset()):
            raise InvalidInputError(f"Cannot change appointment status from {current.value} to {target.value}")

        updated = await self._write_status(row, target)

        if target == AppointmentStatus.CONFIRMED:
            notification_type = NotificationType.APPOINTMENT_CONFIRMED
            title = "Appointment confirmed"
            message = (
                f"Your viewing of {_listing_title(row)} on {row['appointment_date']} "
                f"at {row['appointment_time']} has been confirmed"
            )
        else:
            notification_type = NotificationType.APPOINTMENT_CANCELLED
            title = "Appointment declined"
            message = f"Your viewing request for {_listing_title(row)} was declined by the landlord"

        self.emitter.dispatch(
            row["customer_id"],
            notification_type,
            title,
            message,
            sender_id=principal.id,
            listing_id=row["listing_id"],
            appointment_id=row["id"],
        )
        return Appointment.from_row(updated).to_api()

    async def cancel(self, principal: Principal, appointment_id: str) -> dict:
        row = await self._load(appointment_id)
        require_ownership(principal, (row["customer_id"], row["landlord_id"]))
        return await self._cancel(principal, row)

    async def _cancel(self, principal: Principal, row: dict) -> dict:
        current = AppointmentStatus(row["status"])
        if current == AppointmentStatus.CANCELLED:
            return Appointment.from_row(row).to_api()
        if current.is_terminal:
            raise InvalidInputError(f"Cannot cancel an appointment that is {current.value}")

        updated = await self._write_status(row, AppointmentStatus.CANCELLED)

        recipient_id: Optional[str]
        if principal.id == row["customer_id"]:
            recipient_id = row["landlord_id"]
            actor = _party_name(row, "customer")
        else:
            recipient_id = row["customer_id"]
            actor = _party_name(row, "landlord")

        self.emitter.dispatch(
            recipient_id,
            NotificationType.APPOINTMENT_CANCELLED,
            "Appointment cancelled",
            f"{actor} cancelled the viewing of {_listing_title(row)} on {row['appointment_date']}",
            sender_id=principal.id,
            listing_id=row["listing_id"],
            appointment_id=row["id"],
        )
        return Appointment.from_row(updated).to_api()
