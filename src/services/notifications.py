"""Notification emitter (best-effort side effects) and the recipient's feed."""

import asyncio
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from src.models.notification import Notification, NotificationType, UnreadCount
from src.models.principal import Principal
from src.services.store import NOTIFICATION_FEED_LIMIT
from src.utils.errors import NotFoundError
from src.utils.ids import generate_id
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

# Emission tasks started during the current request
_pending_var: ContextVar[Optional[list]] = ContextVar("pending_notifications", default=None)


@asynccontextmanager
async def notification_scope():
    """Collect notifications dispatched inside the block and wait for them on exit.

    Emission failures are already absorbed by ``NotificationEmitter.emit`` so
    waiting here never raises on their account.
    """
    pending: list[asyncio.Task] = []
    token = _pending_var.set(pending)
    try:
        yield pending
    finally:
        _pending_var.reset(token)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class NotificationEmitter:
    """Creates notification records as fire-and-forget side effects.

    At most one attempt per notification, no retry: a failed insert is logged
    and dropped, and never fails the operation that triggered it.
    """

    def __init__(self, store):
        self.store = store

    async def emit(
        self,
        recipient_id: str,
        type: NotificationType,
        title: str,
        message: str,
        sender_id: Optional[str] = None,
        listing_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
    ) -> Optional[dict]:
        row = {
            "id": generate_id(),
            "recipient_id": recipient_id,
            "sender_id": sender_id,
            "type": NotificationType(type).value,
            "title": title,
            "message": message,
            "related_listing_id": listing_id,
            "related_appointment_id": appointment_id,
            "read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            created = await self.store.insert_notification(row)
        except Exception as e:
            logger.warning(
                "Failed to create notification (non-fatal)",
                recipient_id=mask_user_id(recipient_id),
                notification_type=row["type"],
                error=str(e)
            )
            return None

        logger.info(
            "Notification created",
            recipient_id=mask_user_id(recipient_id),
            notification_type=row["type"],
            appointment_id=appointment_id
        )
        return created

    def dispatch(self, recipient_id: str, type: NotificationType, title: str, message: str, **related) -> asyncio.Task:
        """Schedule ``emit`` without waiting for it.

        Inside ``notification_scope`` the task is awaited before the request
        finishes; outside one the caller owns the returned task.
        """
        task = asyncio.create_task(self.emit(recipient_id, type, title, message, **related))
        pending = _pending_var.get()
        if pending is not None:
            pending.append(task)
        return task


class NotificationService:
    """Read/acknowledge/delete operations on the caller's own notifications.

    Every query is filtered on the recipient instead of going through
    ``require_ownership``, so another user's notification is NotFound, not Forbidden.
    """

    def __init__(self, store):
        self.store = store

    async def list_recent(self, principal: Principal) -> list[dict]:
        rows = await self.store.recent_notifications(principal.id, NOTIFICATION_FEED_LIMIT)
        return [Notification.from_row(row).to_api() for row in rows]

    async def unread_count(self, principal: Principal) -> dict:
        return UnreadCount(count=await self.store.count_unread(principal.id)).to_api()

    async def mark_read(self, principal: Principal, notification_id: str) -> dict:
        row = await self.store.mark_notification_read(notification_id, principal.id)
        if not row:
            raise NotFoundError("Notification not found")
        return Notification.from_row(row).to_api()

    async def mark_all_read(self, principal: Principal) -> dict:
        updated = await self.store.mark_all_read(principal.id)
        logger.info("Marked notifications read", user_id=mask_user_id(principal.id), updated=updated)
        return {"message": "All notifications marked as read"}

    async def delete(self, principal: Principal, notification_id: str) -> dict:
        deleted = await self.store.delete_notification(notification_id, principal.id)
        if not deleted:
            raise NotFoundError("Notification not found")
        return {"message": "Notification deleted"}
