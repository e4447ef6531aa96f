"""Fire-and-forget publication of notification events."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from app.domain.events import (
    CommentEventBase,
    NotificationEvent,
    NotificationEventBase,
    TaskEventBase,
)

logger = logging.getLogger(__name__)


class MessageTransport(Protocol):
    def publish(self, routing_key: str, payload: dict) -> int: ...


class NotificationEventPublisher:
    """Hand events to the transport without ever failing the caller.

    Producers run inside the business operation that triggered the event, so
    every transport error is logged and reported through the boolean result
    instead of being raised.
    """

    def __init__(self, transport: MessageTransport) -> None:
        self._transport = transport

    def publish(self, event: NotificationEventBase) -> bool:
        try:
            routed = self._transport.publish(event.routing_key, event.to_message())
        except Exception as exc:
            logger.error(
                "Failed to publish %s event %s: %s",
                getattr(event, "event_type", type(event).__name__),
                event.message_id,
                exc,
                exc_info=exc,
            )
            return False

        if not routed:
            logger.warning(
                "Event %s (%s) was not routed to any consumer",
                event.message_id,
                event.routing_key,
            )
            return False

        logger.info(
            "Published %s event %s with routing key %s",
            getattr(event, "event_type", type(event).__name__),
            event.message_id,
            event.routing_key,
        )
        return True

    def publish_comment_event(self, event: NotificationEvent) -> bool:
        if not isinstance(event, CommentEventBase):
            logger.error("Refusing to publish %s as a comment event", type(event).__name__)
            return False
        logger.info(
            "Publishing comment event for comment %s (mentions=%d)",
            event.comment_id,
            len(event.mentioned_user_ids),
        )
        return self.publish(event)

    def publish_task_event(self, event: NotificationEvent) -> bool:
        if not isinstance(event, TaskEventBase):
            logger.error("Refusing to publish %s as a task event", type(event).__name__)
            return False
        logger.info(
            "Publishing task event for task %s (assignees=%d)",
            event.task_id,
            len(event.assigned_user_ids),
        )
        return self.publish(event)

    def publish_batch(self, events: Iterable[NotificationEventBase]) -> int:
        """Publish each event and return how many were accepted by the transport."""

        return sum(1 for event in events if self.publish(event))


__all__ = ["MessageTransport", "NotificationEventPublisher"]
