"""Consumers turning comment and task events into stored notifications."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.domain.entities import Notification, NotificationDraft
from app.domain.events import (
    CommentEventBase,
    NotificationEvent,
    StatusUpdatedEvent,
    TaskEventBase,
    TaskUpdatedEvent,
    parse_comment_event,
    parse_task_event,
)
from app.infrastructure.repositories import TaskRepository, UserRepository

from .delivery import EmailDispatcherLike, NotificationDelivery, RealtimePublisherLike
from .recipients import resolve_comment_recipients, resolve_task_recipients
from .routing import (
    TASK_UPDATED_WITHOUT_STATUS,
    UNKNOWN_USER,
    UNTITLED_TASK,
    NotificationPolicy,
    get_task_policy,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Session]


def _event_metadata(event: NotificationEvent, **extra: Any) -> str:
    values = {"eventType": event.event_type, "messageId": event.message_id}
    values.update({key: value for key, value in extra.items() if value is not None})
    return json.dumps(values)


class _EventConsumer:
    """Shared plumbing: parsing, session handling and delivery."""

    family = "notification"

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        email_dispatcher: EmailDispatcherLike,
        realtime_publisher: RealtimePublisherLike | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._delivery = NotificationDelivery(
            email_dispatcher=email_dispatcher,
            realtime_publisher=realtime_publisher,
            settings=settings or get_settings(),
        )

    def handle(self, payload: Any) -> list[Notification]:
        """Process one event payload and return the notifications it stored.

        Malformed payloads and unknown event types are logged and dropped.
        Storage errors propagate so the transport can redeliver the event.
        """

        try:
            event = self.parse(payload)
        except (ValidationError, ValueError) as exc:
            logger.warning("Dropping malformed or unknown %s event: %s", self.family, exc)
            return []

        logger.info(
            "Received %s event %s from user %s",
            event.event_type,
            event.message_id,
            event.author_id,
        )
        session = self._session_factory()
        try:
            drafts = self.build_drafts(session, event)
            if not drafts:
                logger.info("No recipients for %s event %s", event.event_type, event.message_id)
                return []
            saved = self._delivery.deliver(session, drafts)
        finally:
            session.close()

        logger.info(
            "Processed %s event %s: %d notification(s)",
            event.event_type,
            event.message_id,
            len(saved),
        )
        return saved

    def parse(self, payload: Any) -> NotificationEvent:
        raise NotImplementedError

    def build_drafts(self, session: Session, event: NotificationEvent) -> list[NotificationDraft]:
        raise NotImplementedError


class CommentNotificationConsumer(_EventConsumer):
    """Notify assignees, mentioned users and reply targets about comments."""

    family = "comment"

    def parse(self, payload: Any) -> NotificationEvent:
        return parse_comment_event(payload)

    def build_drafts(
        self, session: Session, event: CommentEventBase
    ) -> list[NotificationDraft]:
        tasks = TaskRepository(session)
        task_id = self._resolve_task_id(session, tasks, event)
        title = self._resolve_title(session, tasks, task_id, event)
        assignee_ids = self._resolve_assignees(session, tasks, task_id)

        if not assignee_ids and not event.has_mentions():
            logger.debug(
                "Comment %s has no assignees or mentions to notify", event.comment_id
            )
            return []

        snippet = event.comment_snippet()
        metadata = _event_metadata(
            event,
            commentId=event.comment_id,
            taskId=event.task_id,
            subtaskId=event.subtask_id,
        )
        return [
            NotificationDraft(
                author_id=event.author_id,
                target_id=recipient.user_id,
                notification_type=recipient.reason,
                subject=recipient.policy.subject,
                message=recipient.policy.render_message(title=title, snippet=snippet),
                channels=recipient.policy.channels,
                priority=recipient.priority,
                link=event.notification_link(recipient.policy.highlight),
                metadata=metadata,
            )
            for recipient in resolve_comment_recipients(event, assignee_ids)
        ]

    @staticmethod
    def _resolve_task_id(
        session: Session, tasks: TaskRepository, event: CommentEventBase
    ) -> int | None:
        if event.task_id is not None:
            return event.task_id
        try:
            return tasks.get_parent_task_id(event.subtask_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("Could not resolve parent of subtask %s: %s", event.subtask_id, exc)
            return None

    @staticmethod
    def _resolve_title(
        session: Session,
        tasks: TaskRepository,
        task_id: int | None,
        event: CommentEventBase,
    ) -> str:
        title = None
        if task_id is not None:
            try:
                title = tasks.get_title(task_id)
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning("Could not look up title of task %s: %s", task_id, exc)
        return title or event.task_title or UNTITLED_TASK

    @staticmethod
    def _resolve_assignees(
        session: Session, tasks: TaskRepository, task_id: int | None
    ) -> list[int]:
        if task_id is None:
            return []
        try:
            return tasks.get_assignee_ids(task_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("Could not look up assignees of task %s: %s", task_id, exc)
            return []


class TaskNotificationConsumer(_EventConsumer):
    """Notify task assignees according to the per-event policy table."""

    family = "task"

    def parse(self, payload: Any) -> NotificationEvent:
        return parse_task_event(payload)

    def build_drafts(self, session: Session, event: TaskEventBase) -> list[NotificationDraft]:
        policy = get_task_policy(event.event_type)
        if policy is None:
            logger.warning("No notification policy for task event %s", event.event_type)
            return []

        recipients = resolve_task_recipients(event, policy)
        if not recipients:
            return []

        message = self._render_message(session, event, policy)
        metadata = _event_metadata(event, taskId=event.task_id, projectId=event.project_id)
        link = event.notification_link(policy.highlight)
        return [
            NotificationDraft(
                author_id=event.author_id,
                target_id=user_id,
                notification_type=policy.notification_type,
                subject=policy.subject,
                message=message,
                channels=policy.channels,
                priority=policy.priority,
                link=link,
                metadata=metadata,
            )
            for user_id in recipients
        ]

    def _render_message(
        self, session: Session, event: TaskEventBase, policy: NotificationPolicy
    ) -> str:
        title = event.task_title or UNTITLED_TASK
        if isinstance(event, StatusUpdatedEvent):
            return policy.render_message(
                title=title,
                prev_status=event.prev_task_status,
                status=event.task_status,
                editor=self._editor_name(session, event.author_id),
            )
        if isinstance(event, TaskUpdatedEvent) and not event.task_status:
            return TASK_UPDATED_WITHOUT_STATUS.format(title=title)
        return policy.render_message(title=title, status=getattr(event, "task_status", ""))

    @staticmethod
    def _editor_name(session: Session, user_id: int) -> str:
        try:
            editor = UserRepository(session).get(user_id)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("Could not look up editor %s: %s", user_id, exc)
            return UNKNOWN_USER
        return editor.username if editor and editor.username else UNKNOWN_USER


__all__ = ["CommentNotificationConsumer", "TaskNotificationConsumer"]
