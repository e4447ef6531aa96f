"""ORM models used by the application infrastructure."""

from .comment import CommentModel
from .notification import NotificationModel
from .task import ProjectMemberModel, SubtaskModel, TaskModel, task_assignee_table
from .user import UserModel

__all__ = [
    "CommentModel",
    "NotificationModel",
    "ProjectMemberModel",
    "SubtaskModel",
    "TaskModel",
    "UserModel",
    "task_assignee_table",
]
