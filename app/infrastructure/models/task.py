"""SQLAlchemy models for project members, tasks and subtasks."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.utils import now_utc_naive

task_assignee_table = Table(
    "task_assignee",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("task.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, primary_key=True),
    Column("assigned_at", DateTime, nullable=False, default=now_utc_naive),
)


class ProjectMemberModel(Base):
    """Membership of a user in a project."""

    __tablename__ = "project_member"

    project_id = Column(Integer, primary_key=True)
    user_id = Column(Integer, primary_key=True)


class TaskModel(Base):
    """Database representation of a task."""

    __tablename__ = "task"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, nullable=True, index=True)
    owner_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default="TODO")
    due_at = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=True)

    subtasks = relationship(
        "SubtaskModel",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class SubtaskModel(Base):
    """Database representation of a subtask."""

    __tablename__ = "subtask"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("task.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    status = Column(String(30), nullable=False, default="TODO")

    task = relationship("TaskModel", back_populates="subtasks")


__all__ = ["ProjectMemberModel", "SubtaskModel", "TaskModel", "task_assignee_table"]
