"""Use cases for managing task comments."""

from .create_comment import create_comment
from .update_comment import update_comment

__all__ = ["create_comment", "update_comment"]
