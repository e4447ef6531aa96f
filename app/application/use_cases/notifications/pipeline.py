"""Wire the broker, the event publisher and both consumers together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.config import Settings, get_settings
from app.infrastructure.messaging import (
    COMMENT_QUEUE,
    TASK_QUEUE,
    InMemoryBroker,
    NotificationEventPublisher,
    create_notification_broker,
)

from .consumers import CommentNotificationConsumer, SessionFactory, TaskNotificationConsumer
from .delivery import EmailDispatcherLike, RealtimePublisherLike

logger = logging.getLogger(__name__)


@dataclass
class NotificationPipeline:
    broker: InMemoryBroker
    publisher: NotificationEventPublisher
    comment_consumer: CommentNotificationConsumer
    task_consumer: TaskNotificationConsumer

    def start(self) -> None:
        self.broker.start()

    def shutdown(self) -> None:
        self.broker.shutdown()


def build_notification_pipeline(
    *,
    session_factory: SessionFactory,
    email_dispatcher: EmailDispatcherLike,
    realtime_publisher: RealtimePublisherLike | None = None,
    settings: Settings | None = None,
    broker: InMemoryBroker | None = None,
) -> NotificationPipeline:
    """Return a pipeline whose consumers are subscribed but not yet started."""

    settings = settings or get_settings()
    broker = broker or create_notification_broker()
    comment_consumer = CommentNotificationConsumer(
        session_factory=session_factory,
        email_dispatcher=email_dispatcher,
        realtime_publisher=realtime_publisher,
        settings=settings,
    )
    task_consumer = TaskNotificationConsumer(
        session_factory=session_factory,
        email_dispatcher=email_dispatcher,
        realtime_publisher=realtime_publisher,
        settings=settings,
    )
    broker.subscribe(COMMENT_QUEUE, comment_consumer.handle)
    broker.subscribe(TASK_QUEUE, task_consumer.handle)
    logger.info("Notification consumers subscribed to %s and %s", COMMENT_QUEUE, TASK_QUEUE)
    return NotificationPipeline(
        broker=broker,
        publisher=NotificationEventPublisher(broker),
        comment_consumer=comment_consumer,
        task_consumer=task_consumer,
    )


__all__ = ["NotificationPipeline", "build_notification_pipeline"]
