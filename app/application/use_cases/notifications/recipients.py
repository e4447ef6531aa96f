"""Work out who must be notified for a comment or task event."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from app.domain.entities import NotificationType, Priority
from app.domain.events import (
    CommentCreatedEvent,
    CommentEventBase,
    CommentReplyEvent,
    MentionEvent,
    TaskEventBase,
)

from .routing import COMMENT_POLICIES, NotificationPolicy


@dataclass(frozen=True)
class Recipient:
    """A user paired with the reason they are being notified."""

    user_id: int
    policy: NotificationPolicy

    @property
    def reason(self) -> NotificationType:
        return self.policy.notification_type

    @property
    def priority(self) -> Priority:
        return self.policy.priority


def mention_diff(old: Iterable[int] | None, new: Iterable[int] | None) -> list[int]:
    """Return the ids in ``new`` that were not in ``old``, keeping ``new``'s order."""

    previous = set(old or ())
    return [user_id for user_id in dict.fromkeys(new or ()) if user_id not in previous]


def _unique(user_ids: Iterable[int]) -> list[int]:
    return list(dict.fromkeys(user_ids))


def resolve_comment_recipients(
    event: CommentEventBase, assignee_ids: Sequence[int]
) -> list[Recipient]:
    """Return one recipient per (user, reason) pair for ``event``.

    Duplicates are removed within a reason but not across reasons: an assignee
    who is also mentioned receives both a mention and a new-comment entry.
    The event author is never a recipient.
    """

    if isinstance(event, CommentReplyEvent):
        candidates = [Recipient(event.parent_comment_author_id, COMMENT_POLICIES["COMMENT_REPLY"])]
    elif isinstance(event, MentionEvent):
        policy = COMMENT_POLICIES["MENTION_EDIT"]
        candidates = [Recipient(user_id, policy) for user_id in _unique(event.mentioned_user_ids)]
    elif isinstance(event, CommentCreatedEvent):
        mention_policy = COMMENT_POLICIES["MENTION"]
        comment_policy = COMMENT_POLICIES["NEW_COMMENT"]
        candidates = [
            Recipient(user_id, mention_policy) for user_id in _unique(event.mentioned_user_ids)
        ]
        candidates.extend(Recipient(user_id, comment_policy) for user_id in _unique(assignee_ids))
    else:
        return []

    return [recipient for recipient in candidates if recipient.user_id != event.author_id]


def resolve_task_recipients(event: TaskEventBase, policy: NotificationPolicy) -> list[int]:
    """Return the unique users to notify for ``event``, excluding its author."""

    recipients = _unique(event.assigned_user_ids)
    if policy.exclude_author:
        recipients = [user_id for user_id in recipients if user_id != event.author_id]
    return recipients


__all__ = [
    "Recipient",
    "mention_diff",
    "resolve_comment_recipients",
    "resolve_task_recipients",
]
