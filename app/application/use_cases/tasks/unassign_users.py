"""Use case for removing assignees from a task."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Task
from app.domain.events import TaskUnassignedEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


def unassign_users(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    task_id: int,
    user_ids: Sequence[int],
    removed_by: int,
) -> Task:
    """Remove assignees from a task and tell the users who were removed."""

    repository = TaskRepository(session)
    task = repository.get(task_id)
    if task is None:
        raise ValueError("Task not found")

    removed = repository.remove_assignees(task_id, user_ids)
    logger.info("Removed users %s from task %s", removed, task_id)
    if removed:
        publisher.publish_task_event(
            TaskUnassignedEvent(
                author_id=removed_by,
                task_id=task.id,
                project_id=task.project_id,
                task_title=task.title,
                task_description=task.description,
                assigned_user_ids=removed,
            )
        )
    return repository.get(task_id)
