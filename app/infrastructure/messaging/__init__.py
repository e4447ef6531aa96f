"""Transport and publisher for notification events."""

from .broker import (
    COMMENT_BINDING,
    COMMENT_QUEUE,
    TASK_BINDING,
    TASK_QUEUE,
    DeadLetter,
    InMemoryBroker,
    create_notification_broker,
    topic_matches,
)
from .publisher import MessageTransport, NotificationEventPublisher

__all__ = [
    "COMMENT_BINDING",
    "COMMENT_QUEUE",
    "DeadLetter",
    "InMemoryBroker",
    "MessageTransport",
    "NotificationEventPublisher",
    "TASK_BINDING",
    "TASK_QUEUE",
    "create_notification_broker",
    "topic_matches",
]
