"""Domain entities exposed by the application."""

from .notification import (
    Channel,
    Notification,
    NotificationDraft,
    NotificationFilter,
    NotificationPage,
    NotificationType,
    Priority,
    normalize_metadata,
)
from .task import (
    TASK_STATUS_BLOCKED,
    TASK_STATUS_COMPLETED,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_TODO,
    TASK_STATUSES,
    Comment,
    Subtask,
    Task,
)
from .user import User

__all__ = [
    "Channel",
    "Comment",
    "Notification",
    "NotificationDraft",
    "NotificationFilter",
    "NotificationPage",
    "NotificationType",
    "Priority",
    "Subtask",
    "Task",
    "TASK_STATUSES",
    "TASK_STATUS_BLOCKED",
    "TASK_STATUS_COMPLETED",
    "TASK_STATUS_IN_PROGRESS",
    "TASK_STATUS_TODO",
    "User",
    "normalize_metadata",
]
