"""Persistence layer for tasks, subtasks and their assignees."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from app.domain.entities import TASK_STATUS_COMPLETED, Subtask, Task
from app.infrastructure.models import SubtaskModel, TaskModel, task_assignee_table
from app.utils import now_utc_naive, to_utc_naive


class TaskRepository:
    """Provide CRUD operations and lookups for tasks."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, task_id: int) -> Task | None:
        model = self.session.get(TaskModel, task_id)
        return self._to_entity(model) if model else None

    def get_subtask(self, subtask_id: int) -> Subtask | None:
        model = self.session.get(SubtaskModel, subtask_id)
        if model is None:
            return None
        return Subtask(id=model.id, task_id=model.task_id, title=model.title, status=model.status)

    def get_title(self, task_id: int) -> str | None:
        model = self.session.get(TaskModel, task_id)
        return model.title if model else None

    def get_parent_task_id(self, subtask_id: int) -> int | None:
        model = self.session.get(SubtaskModel, subtask_id)
        return model.task_id if model else None

    def get_assignee_ids(self, task_id: int) -> list[int]:
        statement = (
            select(task_assignee_table.c.user_id)
            .where(task_assignee_table.c.task_id == task_id)
            .order_by(task_assignee_table.c.assigned_at, task_assignee_table.c.user_id)
        )
        return [user_id for (user_id,) in self.session.execute(statement).all()]

    def list_open_due_before(self, cutoff: datetime) -> list[Task]:
        """Return unfinished tasks with a due date at or before ``cutoff``, soonest first."""

        models = (
            self.session.query(TaskModel)
            .filter(TaskModel.due_at.is_not(None))
            .filter(TaskModel.due_at <= to_utc_naive(cutoff))
            .filter(TaskModel.status != TASK_STATUS_COMPLETED)
            .order_by(TaskModel.due_at, TaskModel.id)
            .all()
        )
        return [self._to_entity(model) for model in models]

    def create(self, task: Task) -> Task:
        model = TaskModel(
            project_id=task.project_id,
            owner_id=task.owner_id,
            title=task.title,
            description=task.description,
            status=task.status,
            due_at=to_utc_naive(task.due_at),
            created_at=now_utc_naive(),
        )
        self.session.add(model)
        self.session.flush()
        self._insert_assignees(model.id, task.assignee_ids)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def create_subtask(self, subtask: Subtask) -> Subtask:
        model = SubtaskModel(task_id=subtask.task_id, title=subtask.title, status=subtask.status)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return Subtask(id=model.id, task_id=model.task_id, title=model.title, status=model.status)

    def update(self, task: Task) -> Task:
        model = self.session.get(TaskModel, task.id)
        if model is None:
            msg = f"Task with id {task.id} not found"
            raise ValueError(msg)
        model.title = task.title
        model.description = task.description
        model.status = task.status
        model.due_at = to_utc_naive(task.due_at)
        model.updated_at = now_utc_naive()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def add_assignees(self, task_id: int, user_ids: Iterable[int]) -> list[int]:
        """Assign ``user_ids`` to the task and return the ones that were new."""

        current = set(self.get_assignee_ids(task_id))
        added: list[int] = []
        for user_id in user_ids:
            if user_id in current or user_id in added:
                continue
            added.append(user_id)
        self._insert_assignees(task_id, added)
        self.session.commit()
        return added

    def remove_assignees(self, task_id: int, user_ids: Iterable[int]) -> list[int]:
        """Unassign ``user_ids`` and return the ones that were actually assigned."""

        current = set(self.get_assignee_ids(task_id))
        removed = [user_id for user_id in dict.fromkeys(user_ids) if user_id in current]
        if removed:
            self.session.execute(
                delete(task_assignee_table)
                .where(task_assignee_table.c.task_id == task_id)
                .where(task_assignee_table.c.user_id.in_(removed))
            )
        self.session.commit()
        return removed

    def _insert_assignees(self, task_id: int, user_ids: Iterable[int]) -> None:
        rows = [
            {"task_id": task_id, "user_id": user_id, "assigned_at": now_utc_naive()}
            for user_id in dict.fromkeys(user_ids)
        ]
        if rows:
            self.session.execute(insert(task_assignee_table), rows)

    def _to_entity(self, model: TaskModel) -> Task:
        return Task(
            id=model.id,
            project_id=model.project_id,
            owner_id=model.owner_id,
            title=model.title,
            description=model.description,
            status=model.status,
            assignee_ids=self.get_assignee_ids(model.id),
            due_at=model.due_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


__all__ = ["TaskRepository"]
