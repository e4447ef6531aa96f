"""Use case for creating tasks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from app.domain.entities import TASK_STATUS_TODO, TASK_STATUSES, Task
from app.domain.events import TaskCreatedEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import TaskRepository

logger = logging.getLogger(__name__)


def create_task(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    owner_id: int,
    title: str,
    project_id: int | None = None,
    description: str | None = None,
    status: str = TASK_STATUS_TODO,
    assignee_ids: Sequence[int] | None = None,
    due_at: datetime | None = None,
) -> Task:
    """Create a task and notify its initial assignees."""

    if not title or not title.strip():
        raise ValueError("Task title must not be blank")
    if status not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {status}")

    task = TaskRepository(session).create(
        Task(
            id=None,
            project_id=project_id,
            owner_id=owner_id,
            title=title.strip(),
            description=description,
            status=status,
            assignee_ids=list(dict.fromkeys(assignee_ids or ())),
            due_at=due_at,
        )
    )
    logger.info("Task %s created by user %s", task.id, owner_id)

    if task.assignee_ids:
        publisher.publish_task_event(
            TaskCreatedEvent(
                author_id=owner_id,
                task_id=task.id,
                project_id=task.project_id,
                task_title=task.title,
                task_description=task.description,
                assigned_user_ids=task.assignee_ids,
            )
        )
    return task
