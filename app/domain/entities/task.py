"""Domain entities for tasks, subtasks and their comments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

TASK_STATUS_TODO = "TODO"
TASK_STATUS_IN_PROGRESS = "IN_PROGRESS"
TASK_STATUS_BLOCKED = "BLOCKED"
TASK_STATUS_COMPLETED = "COMPLETED"

TASK_STATUSES = (
    TASK_STATUS_TODO,
    TASK_STATUS_IN_PROGRESS,
    TASK_STATUS_BLOCKED,
    TASK_STATUS_COMPLETED,
)


@dataclass
class Task:
    """A unit of work inside a project."""

    id: int | None
    project_id: int | None
    owner_id: int
    title: str
    description: str | None = None
    status: str = TASK_STATUS_TODO
    assignee_ids: list[int] = field(default_factory=list)
    due_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Subtask:
    """A smaller piece of work belonging to a parent task."""

    id: int | None
    task_id: int
    title: str
    status: str = TASK_STATUS_TODO


@dataclass
class Comment:
    """A threaded comment posted on a task or subtask."""

    id: int | None
    author_id: int
    content: str
    task_id: int | None = None
    subtask_id: int | None = None
    parent_comment_id: int | None = None
    mentioned_user_ids: list[int] = field(default_factory=list)
    edited: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = [
    "Comment",
    "Subtask",
    "Task",
    "TASK_STATUSES",
    "TASK_STATUS_BLOCKED",
    "TASK_STATUS_COMPLETED",
    "TASK_STATUS_IN_PROGRESS",
    "TASK_STATUS_TODO",
]
