"""Typed notification events exchanged between producers and consumers.

Each event family is a discriminated union keyed by ``eventType``. A variant
declares the fields its consumer relies on as required, so incomplete
payloads are rejected while being parsed instead of deep inside the
consumer. On the wire the models use camelCase keys (``messageId``,
``authorId``...), while Python code may use either spelling.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

COMMENT_ROUTING_PREFIX = "notification.comment"
TASK_ROUTING_PREFIX = "notification.task"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _new_message_id() -> str:
    return str(uuid.uuid4())


class NotificationEventBase(BaseModel):
    """Fields shared by every notification event."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    routing_key: ClassVar[str] = "notification.unknown"

    message_id: str = Field(default_factory=_new_message_id, min_length=1)
    author_id: int
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_message(self) -> dict[str, Any]:
        """Return the JSON-compatible wire representation."""

        return self.model_dump(mode="json", by_alias=True)


class CommentEventBase(NotificationEventBase):
    comment_id: int
    task_id: int | None = None
    subtask_id: int | None = None
    project_id: int | None = None
    task_title: str | None = None
    content: str = ""
    mentioned_user_ids: list[int] = Field(default_factory=list)

    @field_validator("mentioned_user_ids", mode="before")
    @classmethod
    def _null_mentions_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "CommentEventBase":
        if (self.task_id is None) == (self.subtask_id is None):
            raise ValueError("exactly one of taskId or subtaskId must be set")
        return self

    def has_mentions(self) -> bool:
        return bool(self.mentioned_user_ids)

    def comment_snippet(self, max_length: int = 100) -> str:
        """Return the comment content truncated to ``max_length`` characters."""

        if not self.content:
            return ""
        if len(self.content) <= max_length:
            return self.content
        return self.content[:max_length] + "..."

    def notification_link(self, highlight: str | None = None) -> str:
        if self.task_id is not None:
            link = f"/tasks/{self.task_id}"
        else:
            link = f"/subtasks/{self.subtask_id}"
        if highlight:
            link = f"{link}?highlight={highlight}"
        return link


class CommentCreatedEvent(CommentEventBase):
    """A new top-level comment was posted."""

    routing_key: ClassVar[str] = f"{COMMENT_ROUTING_PREFIX}.created"

    event_type: Literal["COMMENT_CREATED"] = "COMMENT_CREATED"


class CommentReplyEvent(CommentEventBase):
    """A reply was posted under another user's comment."""

    routing_key: ClassVar[str] = f"{COMMENT_ROUTING_PREFIX}.reply"

    event_type: Literal["COMMENT_REPLY"] = "COMMENT_REPLY"
    parent_comment_author_id: int


class MentionEvent(CommentEventBase):
    """Users were newly mentioned by editing an existing comment."""

    routing_key: ClassVar[str] = f"{COMMENT_ROUTING_PREFIX}.mention"

    event_type: Literal["MENTION"] = "MENTION"
    mentioned_user_ids: list[int] = Field(min_length=1)


CommentEvent = Annotated[
    Union[CommentCreatedEvent, CommentReplyEvent, MentionEvent],
    Field(discriminator="event_type"),
]


class TaskEventBase(NotificationEventBase):
    task_id: int
    project_id: int | None = None
    task_title: str
    task_description: str | None = None
    assigned_user_ids: list[int] = Field(default_factory=list)

    @field_validator("assigned_user_ids", mode="before")
    @classmethod
    def _null_assignees_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def has_assignees(self) -> bool:
        return bool(self.assigned_user_ids)

    def notification_link(self, highlight: str | None = None) -> str:
        if highlight:
            return f"/tasks/{self.task_id}?highlight={highlight}"
        return f"/tasks/{self.task_id}"


class TaskCreatedEvent(TaskEventBase):
    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.created"

    event_type: Literal["TASK_CREATED"] = "TASK_CREATED"


class TaskAssignedEvent(TaskEventBase):
    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.assigned"

    event_type: Literal["TASK_ASSIGNED"] = "TASK_ASSIGNED"


class TaskCompletedEvent(TaskEventBase):
    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.completed"

    event_type: Literal["TASK_COMPLETED"] = "TASK_COMPLETED"


class TaskUpdatedEvent(TaskEventBase):
    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.updated"

    event_type: Literal["TASK_UPDATED"] = "TASK_UPDATED"
    task_status: str | None = None


class TaskUnassignedEvent(TaskEventBase):
    """``assigned_user_ids`` carries the users removed from the task."""

    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.unassigned"

    event_type: Literal["TASK_UNASSIGNED"] = "TASK_UNASSIGNED"


class StatusUpdatedEvent(TaskEventBase):
    routing_key: ClassVar[str] = f"{TASK_ROUTING_PREFIX}.status.updated"

    event_type: Literal["STATUS_UPDATED"] = "STATUS_UPDATED"
    prev_task_status: str
    task_status: str


TaskEvent = Annotated[
    Union[
        TaskCreatedEvent,
        TaskAssignedEvent,
        TaskCompletedEvent,
        TaskUpdatedEvent,
        TaskUnassignedEvent,
        StatusUpdatedEvent,
    ],
    Field(discriminator="event_type"),
]

NotificationEvent = Union[
    CommentCreatedEvent,
    CommentReplyEvent,
    MentionEvent,
    TaskCreatedEvent,
    TaskAssignedEvent,
    TaskCompletedEvent,
    TaskUpdatedEvent,
    TaskUnassignedEvent,
    StatusUpdatedEvent,
]

COMMENT_EVENT_ADAPTER: TypeAdapter = TypeAdapter(CommentEvent)
TASK_EVENT_ADAPTER: TypeAdapter = TypeAdapter(TaskEvent)


def _coerce_payload(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8")
    if isinstance(payload, str):
        return json.loads(payload)
    return payload


def parse_comment_event(payload: Any) -> NotificationEvent:
    """Validate ``payload`` (dict, JSON string or bytes) as a comment event.

    Raises :class:`pydantic.ValidationError` for unknown event types or
    missing required fields and :class:`json.JSONDecodeError` for invalid JSON.
    """

    return COMMENT_EVENT_ADAPTER.validate_python(_coerce_payload(payload))


def parse_task_event(payload: Any) -> NotificationEvent:
    """Validate ``payload`` (dict, JSON string or bytes) as a task event."""

    return TASK_EVENT_ADAPTER.validate_python(_coerce_payload(payload))


__all__ = [
    "COMMENT_ROUTING_PREFIX",
    "TASK_ROUTING_PREFIX",
    "CommentCreatedEvent",
    "CommentEventBase",
    "CommentEvent",
    "CommentReplyEvent",
    "MentionEvent",
    "NotificationEvent",
    "NotificationEventBase",
    "StatusUpdatedEvent",
    "TaskAssignedEvent",
    "TaskEventBase",
    "TaskCompletedEvent",
    "TaskCreatedEvent",
    "TaskEvent",
    "TaskUnassignedEvent",
    "TaskUpdatedEvent",
    "parse_comment_event",
    "parse_task_event",
]
