"""Use case for assigning users to a task."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Task
from app.domain.events import TaskAssignedEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


def assign_users(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    task_id: int,
    user_ids: Sequence[int],
    assigned_by: int,
) -> Task:
    """Add assignees to a task; only newly added users are notified."""

    repository = TaskRepository(session)
    task = repository.get(task_id)
    if task is None:
        raise ValueError("Task not found")

    added = repository.add_assignees(task_id, user_ids)
    logger.info("Assigned users %s to task %s", added, task_id)
    if added:
        publisher.publish_task_event(
            TaskAssignedEvent(
                author_id=assigned_by,
                task_id=task.id,
                project_id=task.project_id,
                task_title=task.title,
                task_description=task.description,
                assigned_user_ids=added,
            )
        )
    return repository.get(task_id)
