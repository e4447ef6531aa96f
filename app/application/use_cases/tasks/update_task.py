"""Use case for editing task details."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from app.domain.entities import Task
from app.domain.events import TaskUpdatedEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


def update_task(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    task_id: int,
    updated_by: int,
    title: str | None = None,
    description: str | None = None,
) -> Task:
    """Update the title or description of a task and notify its assignees."""

    repository = TaskRepository(session)
    current = repository.get(task_id)
    if current is None:
        raise ValueError("Task not found")

    changes: dict[str, str] = {}
    if title is not None:
        if not title.strip():
            raise ValueError("Task title must not be blank")
        changes["title"] = title.strip()
    if description is not None:
        changes["description"] = description
    if not changes:
        return current

    task = repository.update(replace(current, **changes))
    logger.info("Task %s updated by user %s", task_id, updated_by)

    if task.assignee_ids:
        publisher.publish_task_event(
            TaskUpdatedEvent(
                author_id=updated_by,
                task_id=task.id,
                project_id=task.project_id,
                task_title=task.title,
                task_description=task.description,
                assigned_user_ids=task.assignee_ids,
                task_status=task.status,
            )
        )
    return task
