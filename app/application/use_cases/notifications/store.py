"""Use cases backing the recipient-scoped notification store.

Every read or mutation of an individual notification is checked against the
requester: only the notification's target may see, read or dismiss it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from app.domain.entities import (
    Notification,
    NotificationDraft,
    NotificationFilter,
    NotificationPage,
    NotificationType,
    Priority,
)
from app.domain.exceptions import NotificationAccessDeniedError, NotificationNotFoundError
from app.infrastructure.repositories import NotificationRepository
from app.utils import days_ago, minutes_ago

logger = logging.getLogger(__name__)


def create_notification(session: Session, draft: NotificationDraft) -> Notification:
    """Persist a single notification."""

    logger.info(
        "Creating notification for user %s from user %s", draft.target_id, draft.author_id
    )
    saved = NotificationRepository(session).create(draft)
    logger.info("Created notification with ID: %s", saved.id)
    return saved


def create_notifications(
    session: Session, drafts: Sequence[NotificationDraft]
) -> list[Notification]:
    """Persist ``drafts`` in one bulk insert; storage errors propagate."""

    logger.info("Creating %d notifications in bulk", len(drafts))
    saved = NotificationRepository(session).bulk_create(drafts)
    logger.info("Created %d notifications in bulk", len(saved))
    return saved


def get_notification(session: Session, notification_id: int, requester_id: int) -> Notification:
    notification = _get_owned(NotificationRepository(session), notification_id, requester_id)
    return notification


def list_notifications(
    session: Session,
    requester_id: int,
    *,
    filters: NotificationFilter | None = None,
    page: int = 0,
    size: int = 20,
) -> NotificationPage:
    """Return one page of the requester's notifications, newest first."""

    logger.info(
        "Listing notifications for user %s (page=%s, size=%s, filters=%s)",
        requester_id,
        page,
        size,
        filters,
    )
    return NotificationRepository(session).list_for_target(
        requester_id, filters=filters, page=page, size=size
    )


def list_unread_notifications(
    session: Session, requester_id: int, *, page: int = 0, size: int = 20
) -> NotificationPage:
    return list_notifications(
        session,
        requester_id,
        filters=NotificationFilter(unread_only=True, active_only=False),
        page=page,
        size=size,
    )


def list_notifications_by_type(
    session: Session, requester_id: int, notification_type: NotificationType
) -> list[Notification]:
    page = NotificationRepository(session).list_for_target(
        requester_id,
        filters=NotificationFilter(active_only=False, notification_type=notification_type),
        size=None,
    )
    return page.items


def list_notifications_by_priority(
    session: Session, requester_id: int, priority: Priority
) -> list[Notification]:
    page = NotificationRepository(session).list_for_target(
        requester_id,
        filters=NotificationFilter(active_only=False, priority=priority),
        size=None,
    )
    return page.items


def get_unread_count(session: Session, requester_id: int) -> int:
    return NotificationRepository(session).count_unread(requester_id)


def mark_as_read(session: Session, notification_id: int, requester_id: int) -> Notification:
    """Mark one notification as read.

    Raises :class:`NotificationAccessDeniedError` when the requester is not the
    target. Already-read notifications are returned without another write.
    """

    logger.info("Marking notification %s as read for user %s", notification_id, requester_id)
    repository = NotificationRepository(session)
    notification = _get_owned(repository, notification_id, requester_id)
    if notification.read_status:
        return notification

    repository.mark_as_read(notification_id)
    logger.info("Notification %s marked as read", notification_id)
    return repository.get(notification_id) or notification


def mark_many_as_read(
    session: Session, notification_ids: Iterable[int], requester_id: int
) -> int:
    """Mark the requester's notifications among ``notification_ids`` as read.

    Identifiers belonging to other users are ignored.
    """

    ids = list(dict.fromkeys(notification_ids))
    logger.info("Marking %d notifications as read for user %s", len(ids), requester_id)
    updated = NotificationRepository(session).mark_many_as_read(ids, target_id=requester_id)
    logger.info("Marked %d notifications as read", updated)
    return updated


def mark_all_as_read(session: Session, requester_id: int) -> int:
    logger.info("Marking all notifications as read for user %s", requester_id)
    updated = NotificationRepository(session).mark_all_as_read(requester_id)
    logger.info("Marked %d notifications as read for user %s", updated, requester_id)
    return updated


def dismiss_notification(
    session: Session, notification_id: int, requester_id: int
) -> Notification:
    """Dismiss one notification, with the same ownership rules as reading it."""

    logger.info("Dismissing notification %s for user %s", notification_id, requester_id)
    repository = NotificationRepository(session)
    notification = _get_owned(repository, notification_id, requester_id)
    if notification.dismissed_status:
        return notification

    repository.dismiss(notification_id)
    logger.info("Notification %s dismissed", notification_id)
    return repository.get(notification_id) or notification


def delete_notification(session: Session, notification_id: int) -> bool:
    logger.info("Deleting notification %s", notification_id)
    return NotificationRepository(session).delete(notification_id)


def cleanup_old_notifications(session: Session, days_to_keep: int) -> int:
    """Delete read notifications created more than ``days_to_keep`` days ago."""

    if days_to_keep < 0:
        raise ValueError("days_to_keep must not be negative")
    logger.info("Cleaning up read notifications older than %d days", days_to_keep)
    deleted = NotificationRepository(session).delete_read_older_than(days_ago(days_to_keep))
    logger.info("Cleaned up %d old notifications", deleted)
    return deleted


def has_recent_similar_notification(
    session: Session,
    *,
    author_id: int,
    target_id: int,
    notification_type: NotificationType,
    within_minutes: int,
    link: str | None = None,
    now: datetime | None = None,
) -> bool:
    """Return ``True`` if an equivalent notification exists in the trailing window.

    When ``link`` is given only notifications pointing at that link count.
    """

    logger.debug(
        "Checking for %s notifications from user %s to user %s in the last %d minutes",
        notification_type.value,
        author_id,
        target_id,
        within_minutes,
    )
    return NotificationRepository(session).exists_recent(
        author_id=author_id,
        target_id=target_id,
        notification_type=notification_type,
        since=minutes_ago(within_minutes, now=now),
        link=link,
    )


def _get_owned(
    repository: NotificationRepository, notification_id: int, requester_id: int
) -> Notification:
    notification = repository.get(notification_id)
    if notification is None:
        raise NotificationNotFoundError(notification_id)
    if notification.target_id != requester_id:
        logger.warning(
            "User %s attempted to access notification %s owned by %s",
            requester_id,
            notification_id,
            notification.target_id,
        )
        raise NotificationAccessDeniedError(notification_id, requester_id)
    return notification


__all__ = [
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
]
