"""Shared validation helpers for comment use cases."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.infrastructure.repositories import TaskRepository, UserRepository


@dataclass(frozen=True)
class CommentTarget:
    task_id: int
    project_id: int | None
    title: str


def resolve_comment_target(
    session: Session, *, task_id: int | None, subtask_id: int | None
) -> CommentTarget:
    """Return the task a comment belongs to (the parent task for subtasks)."""

    if (task_id is None) == (subtask_id is None):
        raise ValueError("Exactly one of task_id or subtask_id must be provided")

    repository = TaskRepository(session)
    if subtask_id is not None:
        subtask = repository.get_subtask(subtask_id)
        if subtask is None:
            raise ValueError("Subtask not found")
        task_id = subtask.task_id

    task = repository.get(task_id)
    if task is None:
        raise ValueError("Task not found")
    return CommentTarget(task_id=task.id, project_id=task.project_id, title=task.title)


def validate_mentions(
    session: Session, project_id: int | None, mentioned_user_ids: Iterable[int]
) -> list[int]:
    """Return the unique mentioned ids, ensuring they belong to the project."""

    mentions = list(dict.fromkeys(mentioned_user_ids))
    if not mentions or project_id is None:
        return mentions

    members = set(UserRepository(session).list_project_member_ids(project_id))
    outsiders = [user_id for user_id in mentions if user_id not in members]
    if outsiders:
        raise ValueError(f"Mentioned users are not project members: {outsiders}")
    return mentions
