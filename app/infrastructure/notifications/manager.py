"""Track the notification websockets each user has open."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Registry of open notification streams keyed by recipient id.

    Registration happens on the event loop; broker worker threads only call
    :meth:`is_connected` before scheduling a push.
    """

    def __init__(self) -> None:
        self._streams: dict[int, set[WebSocket]] = {}

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self._streams.setdefault(user_id, set()).add(websocket)
        logger.debug(
            "User %s opened a notification stream (%d open)",
            user_id,
            self.connection_count(user_id),
        )

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        streams = self._streams.get(user_id)
        if not streams:
            return
        streams.discard(websocket)
        if not streams:
            del self._streams[user_id]
        logger.debug("User %s closed a notification stream", user_id)

    def connection_count(self, user_id: int) -> int:
        return len(self._streams.get(user_id, ()))

    def is_connected(self, user_id: int) -> bool:
        return self.connection_count(user_id) > 0

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send ``message`` to every stream of ``user_id``; return how many got it.

        Streams that fail to send are dropped.
        """

        delivered = 0
        for websocket in list(self._streams.get(user_id, ())):
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.debug("Dropping notification stream for user %s: %s", user_id, exc)
                self.disconnect(user_id, websocket)
                continue
            delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
