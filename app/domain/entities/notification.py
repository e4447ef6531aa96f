"""Domain entities describing recipient-scoped notifications."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NotificationType(str, Enum):
    """Reason a notification was produced."""

    TASK_ASSIGNED = "TASK_ASSIGNED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_UNASSIGNED = "TASK_UNASSIGNED"
    STATUS_UPDATED = "STATUS_UPDATED"
    COMMENT_ADDED = "COMMENT_ADDED"
    COMMENT_REPLY = "COMMENT_REPLY"
    MENTION = "MENTION"
    TASK_DEADLINE_APPROACHING = "TASK_DEADLINE_APPROACHING"
    PROJECT_INVITE = "PROJECT_INVITE"


class Priority(str, Enum):
    """Relative urgency of a notification."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}


class Channel(str, Enum):
    """Delivery medium a notification is eligible for."""

    IN_APP = "IN_APP"
    EMAIL = "EMAIL"


def normalize_metadata(metadata: str | None) -> str | None:
    """Return ``None`` for blank or whitespace-only metadata."""

    if metadata is None or not metadata.strip():
        return None
    return metadata


@dataclass
class NotificationDraft:
    """Values required to persist a new notification."""

    author_id: int
    target_id: int
    notification_type: NotificationType
    subject: str
    message: str
    channels: tuple[Channel, ...] = (Channel.IN_APP,)
    priority: Priority = Priority.MEDIUM
    link: str | None = None
    metadata: str | None = None

    def __post_init__(self) -> None:
        self.metadata = normalize_metadata(self.metadata)


@dataclass
class Notification:
    """Information message delivered to a specific user."""

    id: int | None
    author_id: int
    target_id: int
    notification_type: NotificationType
    subject: str
    message: str
    channels: tuple[Channel, ...] = (Channel.IN_APP,)
    priority: Priority = Priority.MEDIUM
    link: str | None = None
    metadata: str | None = None
    read_status: bool = False
    read_at: datetime | None = None
    dismissed_status: bool = False
    dismissed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def has_channel(self, channel: Channel) -> bool:
        return channel in self.channels

    @property
    def is_unread(self) -> bool:
        return not self.read_status

    @property
    def is_active(self) -> bool:
        return not self.dismissed_status


@dataclass(frozen=True)
class NotificationFilter:
    """Optional criteria applied when listing a user's notifications."""

    unread_only: bool = False
    active_only: bool = True
    notification_type: NotificationType | None = None
    priority: Priority | None = None


@dataclass
class NotificationPage:
    """One page of notifications plus the totals needed for pagination."""

    items: list[Notification] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 20

    @property
    def pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)


__all__ = [
    "Channel",
    "Notification",
    "NotificationDraft",
    "NotificationFilter",
    "NotificationPage",
    "NotificationType",
    "Priority",
    "normalize_metadata",
]
