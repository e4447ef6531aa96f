"""Aggregate application use cases."""

from .comments import create_comment, update_comment
from .tasks import assign_users, change_task_status, create_task, unassign_users, update_task

__all__ = [
    "assign_users",
    "change_task_status",
    "create_comment",
    "create_task",
    "unassign_users",
    "update_comment",
    "update_task",
]
