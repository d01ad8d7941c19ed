"""Datastore repository: one injected object with per-entity operations.

``SupabaseStore`` is constructed once at process start (see ``src.app``) and
passed to every service. Tests substitute an in-memory object exposing the
same coroutine methods.
"""

import re
from typing import Any, Optional

from src.models.listing import ListingFilters
from src.models.principal import CONTACT_COLUMNS, PUBLIC_USER_COLUMNS
from src.services.supabase_client import QueryRunner

USERS = "users"
LISTINGS = "listings"
APPOINTMENTS = "appointments"
NOTIFICATIONS = "notifications"

NOTIFICATION_FEED_LIMIT = 50

LISTING_SELECT = f"*, owner:users!listings_owner_id_fkey({CONTACT_COLUMNS})"
APPOINTMENT_SELECT = (
    "*, "
    "listing:listings(id, title, address, city, state, zip_code, price, images), "
    f"customer:users!appointments_customer_id_fkey({CONTACT_COLUMNS}), "
    f"landlord:users!appointments_landlord_id_fkey({CONTACT_COLUMNS})"
)
NOTIFICATION_SELECT = (
    "*, "
    "sender:users!notifications_sender_id_fkey(name, email), "
    "related_listing:listings(title)"
)

LOCATION_COLUMNS = ("address", "city", "state")
SEARCH_COLUMNS = ("title", "description", "address", "city")

# Characters with meaning in PostgREST logic trees or LIKE patterns
_RESERVED_PATTERN = re.compile(r'[%*,()"\\:]')


def _first(result: Any) -> Optional[dict]:
    return result.data[0] if result.data and len(result.data) > 0 else None


def _rows(result: Any) -> list[dict]:
    return result.data if result.data else []


def clean_search_term(term: str) -> str:
    """Drop characters that would break an ilike pattern or an or() filter."""
    return _RESERVED_PATTERN.sub(" ", term).strip()


def any_column_ilike(columns: tuple[str, ...], term: str) -> str:
    """PostgREST or() expression: case-insensitive substring match on any column."""
    cleaned = clean_search_term(term)
    return ",".join(f"{column}.ilike.*{cleaned}*" for column in columns)


def apply_listing_filters(query: Any, filters: ListingFilters) -> Any:
    """Translate listing filters into PostgREST predicates, all ANDed together."""
    query = query.eq("available", filters.available)

    if filters.city:
        query = query.ilike("city", f"%{clean_search_term(filters.city)}%")
    if filters.state:
        query = query.ilike("state", f"%{clean_search_term(filters.state)}%")
    if filters.location:
        query = query.or_(any_column_ilike(LOCATION_COLUMNS, filters.location))
    if filters.search:
        query = query.or_(any_column_ilike(SEARCH_COLUMNS, filters.search))

    if filters.min_price is not None:
        query = query.gte("price", filters.min_price)
    if filters.max_price is not None:
        query = query.lte("price", filters.max_price)
    if filters.min_bedrooms is not None:
        query = query.gte("bedrooms", filters.min_bedrooms)
    if filters.max_bedrooms is not None:
        query = query.lte("bedrooms", filters.max_bedrooms)

    if filters.property_type is not None:
        query = query.eq("property_type", filters.property_type.value)

    return query


class SupabaseStore:
    """Supabase-backed repository for users, listings, appointments and notifications."""

    def __init__(self, runner: Optional[QueryRunner] = None):
        self.runner = runner or QueryRunner()

    # Users

    async def get_user(self, user_id: str) -> Optional[dict]:
        result = await self.runner.run(
            "get user",
            lambda c: c.table(USERS).select(PUBLIC_USER_COLUMNS).eq("id", user_id).limit(1),
        )
        return _first(result)

    async def update_user(self, user_id: str, updates: dict) -> Optional[dict]:
        await self.runner.run(
            "update user",
            lambda c: c.table(USERS).update(updates).eq("id", user_id),
            read=False,
        )
        # Re-read so the password column never leaves the datastore layer
        return await self.get_user(user_id)

    # Listings

    async def search_listings(self, filters: ListingFilters) -> list[dict]:
        result = await self.runner.run(
            "search listings",
            lambda c: apply_listing_filters(c.table(LISTINGS).select(LISTING_SELECT), filters)
            .order("created_at", desc=True),
        )
        return _rows(result)

    async def get_listing(self, listing_id: str) -> Optional[dict]:
        result = await self.runner.run(
            "get listing",
            lambda c: c.table(LISTINGS).select(LISTING_SELECT).eq("id", listing_id).limit(1),
        )
        return _first(result)

    async def listings_by_owner(self, owner_id: str) -> list[dict]:
        result = await self.runner.run(
            "list owner listings",
            lambda c: c.table(LISTINGS).select(LISTING_SELECT)
            .eq("owner_id", owner_id)
            .order("created_at", desc=True),
        )
        return _rows(result)

    async def insert_listing(self, row: dict) -> dict:
        await self.runner.run(
            "create listing",
            lambda c: c.table(LISTINGS).insert(row),
            read=False,
        )
        return await self.get_listing(row["id"])

    async def update_listing(self, listing_id: str, updates: dict, owner_id: str) -> Optional[dict]:
        """Conditional update: only applies while ``owner_id`` still owns the row."""
        result = await self.runner.run(
            "update listing",
            lambda c: c.table(LISTINGS).update(updates).eq("id", listing_id).eq("owner_id", owner_id),
            read=False,
        )
        if not _first(result):
            return None
        return await self.get_listing(listing_id)

    async def delete_listing(self, listing_id: str, owner_id: str) -> bool:
        result = await self.runner.run(
            "delete listing",
            lambda c: c.table(LISTINGS).delete().eq("id", listing_id).eq("owner_id", owner_id),
            read=False,
        )
        return _first(result) is not None

    # Appointments

    async def insert_appointment(self, row: dict) -> dict:
        await self.runner.run(
            "create appointment",
            lambda c: c.table(APPOINTMENTS).insert(row),
            read=False,
        )
        return await self.get_appointment(row["id"])

    async def get_appointment(self, appointment_id: str) -> Optional[dict]:
        result = await self.runner.run(
            "get appointment",
            lambda c: c.table(APPOINTMENTS).select(APPOINTMENT_SELECT).eq("id", appointment_id).limit(1),
        )
        return _first(result)

    async def update_appointment_status(
        self,
        appointment_id: str,
        status: str,
        expected_status: str,
        updated_at: str,
    ) -> Optional[dict]:
        """Compare-and-set on status. Returns None when the row moved on first."""
        result = await self.runner.run(
            "update appointment status",
            lambda c: c.table(APPOINTMENTS)
            .update({"status": status, "updated_at": updated_at})
            .eq("id", appointment_id)
            .eq("status", expected_status),
            read=False,
        )
        if not _first(result):
            return None
        return await self.get_appointment(appointment_id)

    async def appointments_for_customer(self, customer_id: str) -> list[dict]:
        result = await self.runner.run(
            "list customer appointments",
            lambda c: c.table(APPOINTMENTS).select(APPOINTMENT_SELECT)
            .eq("customer_id", customer_id)
            .order("appointment_date", desc=True),
        )
        return _rows(result)

    async def appointments_for_landlord(self, landlord_id: str) -> list[dict]:
        result = await self.runner.run(
            "list landlord appointments",
            lambda c: c.table(APPOINTMENTS).select(APPOINTMENT_SELECT)
            .eq("landlord_id", landlord_id)
            .order("appointment_date", desc=True),
        )
        return _rows(result)

    # Notifications

    async def insert_notification(self, row: dict) -> dict:
        result = await self.runner.run(
            "create notification",
            lambda c: c.table(NOTIFICATIONS).insert(row),
            read=False,
        )
        return _first(result) or row

    async def recent_notifications(self, recipient_id: str, limit: int = NOTIFICATION_FEED_LIMIT) -> list[dict]:
        result = await self.runner.run(
            "list notifications",
            lambda c: c.table(NOTIFICATIONS).select(NOTIFICATION_SELECT)
            .eq("recipient_id", recipient_id)
            .order("created_at", desc=True)
            .limit(limit),
        )
        return _rows(result)

    async def count_unread(self, recipient_id: str) -> int:
        result = await self.runner.run(
            "count unread notifications",
            lambda c: c.table(NOTIFICATIONS).select("id", count="exact")
            .eq("recipient_id", recipient_id)
            .eq("read", False),
        )
        return result.count or 0

    async def mark_notification_read(self, notification_id: str, recipient_id: str) -> Optional[dict]:
        result = await self.runner.run(
            "mark notification read",
            lambda c: c.table(NOTIFICATIONS).update({"read": True})
            .eq("id", notification_id)
            .eq("recipient_id", recipient_id),
            read=False,
        )
        return _first(result)

    async def mark_all_read(self, recipient_id: str) -> int:
        result = await self.runner.run(
            "mark all notifications read",
            lambda c: c.table(NOTIFICATIONS).update({"read": True})
            .eq("recipient_id", recipient_id)
            .eq("read", False),
            read=False,
        )
        return len(_rows(result))

    async def delete_notification(self, notification_id: str, recipient_id: str) -> bool:
        result = await self.runner.run(
            "delete notification",
            lambda c: c.table(NOTIFICATIONS).delete()
            .eq("id", notification_id)
            .eq("recipient_id", recipient_id),
            read=False,
        )
        return _first(result) is not None
