"""Use cases for managing tasks and their assignees."""

from .assign_users import assign_users
from .change_task_status import change_task_status
from .create_task import create_task
from .unassign_users import unassign_users
from .update_task import update_task

__all__ = [
    "assign_users",
    "change_task_status",
    "create_task",
    "unassign_users",
    "update_task",
]
