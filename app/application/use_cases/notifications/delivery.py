"""Persist notification drafts and fan them out to their delivery channels."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future
from typing import Protocol

from sqlalchemy.orm import Session

from app.config import Settings
from app.domain.entities import Channel, Notification, NotificationDraft
from app.infrastructure.repositories import UserRepository

from .email_rendering import render_html, render_plain_text
from .store import create_notifications

logger = logging.getLogger(__name__)


class EmailDispatcherLike(Protocol):
    def dispatch(
        self,
        recipient: str,
        subject: str,
        html_content: str,
        plain_text_content: str | None = None,
    ) -> Future[bool]: ...


class RealtimePublisherLike(Protocol):
    def dispatch(self, notification: Notification) -> bool: ...


def select_email_notifications(notifications: Sequence[Notification]) -> list[Notification]:
    """Pick one email-eligible notification per recipient.

    When a recipient has several, the highest-priority one wins; ties keep the
    first in ``notifications`` order.
    """

    chosen: dict[int, Notification] = {}
    for notification in notifications:
        if not notification.has_channel(Channel.EMAIL):
            continue
        current = chosen.get(notification.target_id)
        if current is None or notification.priority.rank > current.priority.rank:
            chosen[notification.target_id] = notification
    return list(chosen.values())


class NotificationDelivery:
    """Store drafts in bulk, then push realtime messages and emails.

    Storage errors propagate to the caller. Realtime push, profile lookups and
    email submission fail per recipient and never abort the rest.
    """

    def __init__(
        self,
        *,
        email_dispatcher: EmailDispatcherLike,
        realtime_publisher: RealtimePublisherLike | None,
        settings: Settings,
    ) -> None:
        self._email_dispatcher = email_dispatcher
        self._realtime_publisher = realtime_publisher
        self._settings = settings

    def deliver(
        self, session: Session, drafts: Sequence[NotificationDraft]
    ) -> list[Notification]:
        if not drafts:
            return []

        saved = create_notifications(session, drafts)
        self._push_in_app(saved)
        self._send_emails(session, saved)
        return saved

    def _push_in_app(self, notifications: Sequence[Notification]) -> None:
        if self._realtime_publisher is None:
            return
        for notification in notifications:
            if not notification.has_channel(Channel.IN_APP):
                continue
            try:
                self._realtime_publisher.dispatch(notification)
            except Exception as exc:
                logger.warning(
                    "Realtime push of notification %s to user %s failed: %s",
                    notification.id,
                    notification.target_id,
                    exc,
                )

    def _send_emails(self, session: Session, notifications: Sequence[Notification]) -> None:
        users = UserRepository(session)
        for notification in select_email_notifications(notifications):
            target_id = notification.target_id
            try:
                user = users.get(target_id)
            except Exception as exc:
                session.rollback()
                logger.warning("Could not look up user %s for email: %s", target_id, exc)
                continue

            if user is None or not user.has_email():
                logger.info("No email address for user %s; skipping email", target_id)
                continue

            try:
                self._email_dispatcher.dispatch(
                    user.email,
                    notification.subject,
                    render_html(notification, self._settings),
                    render_plain_text(notification, self._settings),
                )
            except Exception as exc:
                logger.error("Failed to queue email for user %s: %s", target_id, exc)
                continue
            logger.debug("Queued email for notification %s to %s", notification.id, user.email)


__all__ = [
    "EmailDispatcherLike",
    "NotificationDelivery",
    "RealtimePublisherLike",
    "select_email_notifications",
]
