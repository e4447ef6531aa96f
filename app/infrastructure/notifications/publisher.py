"""Push freshly stored notifications to the recipient's open websockets."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize notifications and schedule their delivery.

    Consumers run on broker worker threads, so delivery is scheduled on the
    event loop registered with :meth:`bind_loop` (the API server's loop).
    Without a bound loop, realtime push is skipped; the notification is still
    available through the REST endpoints.
    """

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        self._loop = loop

    def dispatch(self, notification: Notification) -> bool:
        """Schedule ``notification`` for its target; return whether it was scheduled.

        Nothing is serialized or scheduled when the target has no open stream.
        """

        if not self._manager.is_connected(notification.target_id):
            return False

        message = {"type": "notification", "data": serialize_notification(notification)}
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None:
            running.create_task(self._manager.send_to_user(notification.target_id, message))
            return True

        loop = self._loop
        if loop is None or loop.is_closed():
            return False
        asyncio.run_coroutine_threadsafe(
            self._manager.send_to_user(notification.target_id, message), loop
        )
        return True


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "author_id": notification.author_id,
        "target_id": notification.target_id,
        "notification_type": notification.notification_type.value,
        "subject": notification.subject,
        "message": notification.message,
        "channels": [channel.value for channel in notification.channels],
        "priority": notification.priority.value,
        "link": notification.link,
        "read_status": notification.read_status,
        "dismissed_status": notification.dismissed_status,
        "created_at": _iso_or_none(notification.created_at),
        "read_at": _iso_or_none(notification.read_at),
    }


def _iso_or_none(value) -> str | None:
    return value.isoformat() if value else None


notification_publisher = NotificationPublisher(notification_manager)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
]
