"""
Recipient-keyed publish/subscribe for newly inserted notifications.

NotificationBroker is the in-process fan-out every consumer subscribes to.
Rows reach it either straight from NotificationService after an insert
(realtime_backend=local) or from SupabaseRealtimeBridge, which listens to
postgres_changes on the notifications table (realtime_backend=supabase).
Delivery is at-least-once; nothing here deduplicates.
"""

import itertools
import logging
import threading
from typing import Any, Callable, Dict, Optional

from supabase import acreate_client, AsyncClient

logger = logging.getLogger(__name__)

NotificationCallback = Callable[[Dict[str, Any]], None]


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() on consumer teardown."""

    def __init__(self, broker: "NotificationBroker", user_id: str, token: int):
        self._broker = broker
        self.user_id = user_id
        self._token = token
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._broker._remove(self.user_id, self._token)


class NotificationBroker:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Dict[int, NotificationCallback]] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, user_id: str, callback: NotificationCallback) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._subscribers.setdefault(user_id, {})[token] = callback
        logger.info(f"Realtime subscription opened for user {user_id}")
        return Subscription(self, user_id, token)

    def _remove(self, user_id: str, token: int) -> None:
        with self._lock:
            callbacks = self._subscribers.get(user_id)
            if callbacks is None:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[user_id]
        logger.info(f"Realtime subscription closed for user {user_id}")

    def subscriber_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(user_id, {}))

    def publish(self, row: Dict[str, Any]) -> int:
        """Deliver row to every subscriber of row['user_id']. Returns the number of callbacks invoked."""
        user_id = row.get("user_id")
        with self._lock:
            callbacks = list(self._subscribers.get(user_id, {}).values())
        logger.debug(f"Publishing notification {row.get('id')} to {len(callbacks)} subscriber(s)")
        for callback in callbacks:
            try:
                callback(row)
            except Exception as e:
                logger.error(f"Notification subscriber for user {user_id} failed: {str(e)}")
        return len(callbacks)


def extract_inserted_row(payload: Any) -> Optional[Dict[str, Any]]:
    """Pull the new row out of a postgres_changes payload."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("record"), dict):
        return data["record"]
    for key in ("new", "record"):
        if isinstance(payload.get(key), dict):
            return payload[key]
    return None


class SupabaseRealtimeBridge:
    """Feeds the broker from Supabase Realtime INSERT events on public.notifications."""

    def __init__(
        self,
        broker: NotificationBroker,
        supabase_url: str,
        supabase_key: str,
        table: str = "notifications",
        schema: str = "public",
    ):
        self.broker = broker
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.table = table
        self.schema = schema
        self._client: Optional[AsyncClient] = None
        self._channel = None

    async def start(self) -> None:
        self._client = await acreate_client(self.supabase_url, self.supabase_key)
        self._channel = self._client.channel(self.table)
        self._channel.on_postgres_changes(
            "INSERT",
            schema=self.schema,
            table=self.table,
            callback=self._on_insert,
        )
        await self._channel.subscribe(self._on_status)
        logger.info(f"Realtime bridge listening on {self.schema}.{self.table}")

    async def stop(self) -> None:
        if self._client is not None and self._channel is not None:
            try:
                await self._client.remove_channel(self._channel)
            except Exception as e:
                logger.warning(f"Error removing realtime channel: {str(e)}")
        self._channel = None
        self._client = None

    def _on_insert(self, payload: Any) -> None:
        row = extract_inserted_row(payload)
        if row is None:
            logger.warning(f"Ignoring realtime payload without a record: {payload!r}")
            return
        self.broker.publish(row)

    def _on_status(self, status: Any, error: Optional[Exception] = None) -> None:
        if error is not None:
            logger.error(f"Realtime subscription status {status}: {error}")
        else:
            logger.info(f"Realtime subscription status: {status}")


_broker: Optional[NotificationBroker] = None


def get_notification_broker() -> NotificationBroker:
    global _broker
    if _broker is None:
        _broker = NotificationBroker()
    return _broker
