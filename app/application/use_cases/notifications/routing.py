"""Declarative per-event policies used by the notification consumers."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from app.domain.entities import Channel, NotificationType, Priority

UNTITLED_TASK = "Untitled task"
UNKNOWN_USER = "Unknown User"

IN_APP_AND_EMAIL = (Channel.IN_APP, Channel.EMAIL)
IN_APP_ONLY = (Channel.IN_APP,)


@dataclass(frozen=True)
class NotificationPolicy:
    """How notifications for one event type (or comment reason) are built.

    ``message_template`` is formatted with the keyword arguments produced by
    the consumer (``title``, ``snippet``, ``status``, ``prev_status``,
    ``editor``...).
    """

    notification_type: NotificationType
    subject: str
    priority: Priority
    channels: tuple[Channel, ...]
    message_template: str
    highlight: str | None = None
    exclude_author: bool = True

    def render_message(self, **values: str) -> str:
        return self.message_template.format(**values)


TASK_POLICIES: Mapping[str, NotificationPolicy] = MappingProxyType(
    {
        "TASK_CREATED": NotificationPolicy(
            notification_type=NotificationType.TASK_ASSIGNED,
            subject="New task assigned to you",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='You\'ve been assigned to task: "{title}"',
        ),
        "TASK_ASSIGNED": NotificationPolicy(
            notification_type=NotificationType.TASK_ASSIGNED,
            subject="Task assigned to you",
            priority=Priority.HIGH,
            channels=IN_APP_AND_EMAIL,
            message_template='You\'ve been assigned to task: "{title}"',
            highlight="assignees",
        ),
        "TASK_COMPLETED": NotificationPolicy(
            notification_type=NotificationType.TASK_COMPLETED,
            subject="Task completed",
            priority=Priority.LOW,
            channels=IN_APP_ONLY,
            message_template='Task "{title}" has been completed',
        ),
        "TASK_UPDATED": NotificationPolicy(
            notification_type=NotificationType.TASK_UPDATED,
            subject="Task updated",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='Task "{title}" status updated to: {status}',
        ),
        "TASK_UNASSIGNED": NotificationPolicy(
            notification_type=NotificationType.TASK_UNASSIGNED,
            subject="Removed from task",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='You\'ve been removed from task: "{title}"',
            highlight="assignees",
        ),
        "STATUS_UPDATED": NotificationPolicy(
            notification_type=NotificationType.STATUS_UPDATED,
            subject="Task status updated",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='Task "{title}" status changed from {prev_status} to {status} by {editor}',
            highlight="status",
        ),
    }
)

# Body used for TASK_UPDATED when the event carries no status.
TASK_UPDATED_WITHOUT_STATUS = 'Task "{title}" has been updated'

COMMENT_POLICIES: Mapping[str, NotificationPolicy] = MappingProxyType(
    {
        # A user mentioned while the comment was created.
        "MENTION": NotificationPolicy(
            notification_type=NotificationType.MENTION,
            subject="You were mentioned in a comment",
            priority=Priority.HIGH,
            channels=IN_APP_AND_EMAIL,
            message_template='You were mentioned: "{snippet}"',
            highlight="comments",
        ),
        # A user newly mentioned by editing an existing comment.
        "MENTION_EDIT": NotificationPolicy(
            notification_type=NotificationType.MENTION,
            subject="You were mentioned in a comment",
            priority=Priority.HIGH,
            channels=IN_APP_AND_EMAIL,
            message_template='You were mentioned in "{title}": "{snippet}"',
            highlight="comments",
        ),
        "NEW_COMMENT": NotificationPolicy(
            notification_type=NotificationType.COMMENT_REPLY,
            subject="New comment on your task",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='New comment on "{title}": "{snippet}"',
            highlight="comments",
        ),
        "COMMENT_REPLY": NotificationPolicy(
            notification_type=NotificationType.COMMENT_REPLY,
            subject="Reply to your comment",
            priority=Priority.MEDIUM,
            channels=IN_APP_AND_EMAIL,
            message_template='New reply: "{snippet}"',
            highlight="comments",
        ),
    }
)


# Reminders for tasks approaching or past their due date. The task owner is
# recorded as author but is still reminded when assigned.
DEADLINE_POLICIES: Mapping[str, NotificationPolicy] = MappingProxyType(
    {
        "PRE_DUE": NotificationPolicy(
            notification_type=NotificationType.TASK_DEADLINE_APPROACHING,
            subject="Task due soon",
            priority=Priority.HIGH,
            channels=IN_APP_AND_EMAIL,
            message_template='Task "{title}" is due in less than {hours} hours (due {due})',
            highlight="due-date",
            exclude_author=False,
        ),
        "OVERDUE": NotificationPolicy(
            notification_type=NotificationType.TASK_DEADLINE_APPROACHING,
            subject="Task overdue",
            priority=Priority.HIGH,
            channels=IN_APP_AND_EMAIL,
            message_template='Task "{title}" is overdue (was due {due})',
            highlight="overdue",
            exclude_author=False,
        ),
    }
)


def get_task_policy(event_type: str) -> NotificationPolicy | None:
    return TASK_POLICIES.get(event_type)


__all__ = [
    "COMMENT_POLICIES",
    "DEADLINE_POLICIES",
    "IN_APP_AND_EMAIL",
    "IN_APP_ONLY",
    "NotificationPolicy",
    "TASK_POLICIES",
    "TASK_UPDATED_WITHOUT_STATUS",
    "UNKNOWN_USER",
    "UNTITLED_TASK",
    "get_task_policy",
]
