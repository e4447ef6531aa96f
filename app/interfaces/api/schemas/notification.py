"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import Channel, NotificationType, Priority


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    author_id: int
    target_id: int
    notification_type: NotificationType
    subject: str
    message: str
    channels: list[Channel] = Field(default_factory=list)
    priority: Priority
    link: str | None = None
    metadata: str | None = None
    read_status: bool
    read_at: datetime | None = None
    dismissed_status: bool
    dismissed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationPageRead(BaseModel):
    items: list[NotificationRead]
    total: int
    page: int
    size: int
    pages: int


class UnreadCountRead(BaseModel):
    count: int


class NotificationBulkUpdateResult(BaseModel):
    updated: int


__all__ = [
    "NotificationBulkUpdateResult",
    "NotificationMarkReadRequest",
    "NotificationPageRead",
    "NotificationRead",
    "UnreadCountRead",
]
