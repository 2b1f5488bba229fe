"""
Client-side view of a recipient's notifications.

NotificationFeed holds what the bell, the dropdown and the notifications page
show: a local list, an unread counter and a live subscription. The counter is
bumped locally on every push but re-read from the server after a click,
because other tabs and devices mark notifications read too.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Union

from app.modules.notifications.schemas import NotificationResponse
from app.modules.notifications.service import NotificationService
from app.modules.notifications.realtime import Subscription
from app.modules.notifications.templates import NotificationType, NotificationPriority

logger = logging.getLogger(__name__)

ToastCallback = Callable[[str, str, NotificationPriority], None]


def notification_target(notification: NotificationResponse) -> Optional[str]:
    """Where a click on this notification navigates to, if anywhere."""
    data = notification.data or {}
    if data.get("rfq_id"):
        return f"/rfqs/{data['rfq_id']}"
    if data.get("message_id"):
        return "/messages"
    return None


class NotificationFeed:
    def __init__(
        self,
        service: NotificationService,
        user_id: Optional[str],
        window: Optional[int] = None,
        on_toast: Optional[ToastCallback] = None,
        page_size: int = 50
    ):
        self.service = service
        self.user_id = user_id
        self.window = window
        self.on_toast = on_toast
        self.page_size = window if window is not None else page_size
        self.notifications: List[NotificationResponse] = []
        self.unread_count = 0
        self.loading = False
        self._lock = threading.Lock()
        self._pending: List[NotificationResponse] = []
        self._subscription: Optional[Subscription] = None

    async def open(self) -> None:
        if not self.user_id or self._subscription is not None:
            return
        # Subscribe first; pushes that land while the first page loads are held back and merged
        with self._lock:
            self.loading = True
            self._pending = []
        self._subscription = self.service.subscribe_to_notifications(self.user_id, self._on_push)
        try:
            notifications, unread_count = await asyncio.gather(
                asyncio.to_thread(self.service.get_user_notifications, self.user_id, self.page_size),
                asyncio.to_thread(self.service.get_unread_count, self.user_id),
            )
        except BaseException:
            with self._lock:
                self.loading = False
                self._pending = []
            raise
        with self._lock:
            self.notifications = notifications
            self.unread_count = unread_count
            pending, self._pending = self._pending, []
            for notification in pending:
                self._merge(notification)
            self.loading = False
        if pending:
            # The fetched count may or may not include the raced rows
            self.unread_count = await asyncio.to_thread(self.service.get_unread_count, self.user_id)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def _on_push(self, row: Union[Dict[str, Any], NotificationResponse]) -> None:
        notification = row if isinstance(row, NotificationResponse) else NotificationResponse(**row)
        with self._lock:
            held = self.loading
            if held:
                self._pending.append(notification)
        if not held:
            self._merge(notification)
            self.unread_count += 1

        if self.on_toast is not None:
            try:
                self.on_toast(notification.title, notification.message, notification.priority)
            except Exception as e:
                logger.error(f"Error showing notification toast: {str(e)}")

    def _merge(self, notification: NotificationResponse) -> None:
        rest = [n for n in self.notifications if n.id != notification.id]
        self.notifications = [notification] + rest
        if self.window is not None:
            self.notifications = self.notifications[:self.window]

    def _find(self, notification_id: str) -> Optional[NotificationResponse]:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    async def click(self, notification_id: str) -> Optional[str]:
        """Mark an unread entry read and return its navigation target."""
        notification = self._find(notification_id)
        if notification is None:
            return None
        if not notification.is_read and self.user_id:
            await asyncio.to_thread(self.service.mark_as_read, notification_id)
            self.notifications = [
                n.model_copy(update={"is_read": True}) if n.id == notification_id else n
                for n in self.notifications
            ]
            self.unread_count = await asyncio.to_thread(self.service.get_unread_count, self.user_id)
        return notification_target(notification)

    async def mark_all_read(self) -> bool:
        if not self.user_id:
            return False
        success = await asyncio.to_thread(self.service.mark_all_as_read, self.user_id)
        if success:
            self.notifications = [n.model_copy(update={"is_read": True}) for n in self.notifications]
            self.unread_count = 0
        return success

    async def remove(self, notification_id: str) -> bool:
        if not self.user_id:
            return False
        success = await asyncio.to_thread(self.service.delete_notification, notification_id)
        if success:
            self.notifications = [n for n in self.notifications if n.id != notification_id]
            self.unread_count = await asyncio.to_thread(self.service.get_unread_count, self.user_id)
        return success

    def filter(
        self,
        unread_only: bool = False,
        notification_type: Optional[NotificationType] = None,
        priority: Optional[NotificationPriority] = None
    ) -> List[NotificationResponse]:
        return [
            n for n in self.notifications
            if not (unread_only and n.is_read)
            and (notification_type is None or n.type == notification_type)
            and (priority is None or n.priority == priority)
        ]
