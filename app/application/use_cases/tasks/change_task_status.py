"""Use case for moving a task to another status."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from app.domain.entities import TASK_STATUS_COMPLETED, TASK_STATUSES, Task
from app.domain.events import StatusUpdatedEvent, TaskCompletedEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


def change_task_status(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    task_id: int,
    status: str,
    changed_by: int,
) -> Task:
    """Change the task status.

    Completing a task emits a completion event; any other change emits a
    status update naming the previous and new status. Setting the current
    status again is a no-op.
    """

    if status not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {status}")

    repository = TaskRepository(session)
    current = repository.get(task_id)
    if current is None:
        raise ValueError("Task not found")
    if current.status == status:
        return current

    task = repository.update(replace(current, status=status))
    logger.info(
        "Task %s status changed from %s to %s by user %s",
        task_id,
        current.status,
        status,
        changed_by,
    )

    if not task.assignee_ids:
        return task

    common = dict(
        author_id=changed_by,
        task_id=task.id,
        project_id=task.project_id,
        task_title=task.title,
        task_description=task.description,
        assigned_user_ids=task.assignee_ids,
    )
    if status == TASK_STATUS_COMPLETED:
        event = TaskCompletedEvent(**common)
    else:
        event = StatusUpdatedEvent(prev_task_status=current.status, task_status=status, **common)
    publisher.publish_task_event(event)
    return task
