"""Notification pipeline: recipient resolution, consumers and the store."""

from .consumers import CommentNotificationConsumer, TaskNotificationConsumer
from .deadlines import OVERDUE, PRE_DUE, DeadlineReminderResult, check_task_deadlines
from .delivery import NotificationDelivery, select_email_notifications
from .email_rendering import render_html, render_plain_text
from .pipeline import NotificationPipeline, build_notification_pipeline
from .recipients import (
    Recipient,
    mention_diff,
    resolve_comment_recipients,
    resolve_task_recipients,
)
from .routing import COMMENT_POLICIES, DEADLINE_POLICIES, TASK_POLICIES, NotificationPolicy
from .store import (
    cleanup_old_notifications,
    create_notification,
    create_notifications,
    delete_notification,
    dismiss_notification,
    get_notification,
    get_unread_count,
    has_recent_similar_notification,
    list_notifications,
    list_notifications_by_priority,
    list_notifications_by_type,
    list_unread_notifications,
    mark_all_as_read,
    mark_as_read,
    mark_many_as_read,
)

__all__ = [
    "COMMENT_POLICIES",
    "CommentNotificationConsumer",
    "DEADLINE_POLICIES",
    "DeadlineReminderResult",
    "NotificationDelivery",
    "NotificationPipeline",
    "NotificationPolicy",
    "OVERDUE",
    "PRE_DUE",
    "Recipient",
    "TASK_POLICIES",
    "TaskNotificationConsumer",
    "build_notification_pipeline",
    "check_task_deadlines",
    "cleanup_old_notifications",
    "create_notification",
    "create_notifications",
    "delete_notification",
    "dismiss_notification",
    "get_notification",
    "get_unread_count",
    "has_recent_similar_notification",
    "list_notifications",
    "list_notifications_by_priority",
    "list_notifications_by_type",
    "list_unread_notifications",
    "mark_all_as_read",
    "mark_as_read",
    "mark_many_as_read",
    "mention_diff",
    "render_html",
    "render_plain_text",
    "resolve_comment_recipients",
    "resolve_task_recipients",
    "select_email_notifications",
]
