"""SQLAlchemy model for task comments."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Text

from app.infrastructure.database import Base
from app.utils import now_utc_naive


class CommentModel(Base):
    """Database representation of a threaded comment."""

    __tablename__ = "task_comment"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, nullable=False)
    task_id = Column(Integer, ForeignKey("task.id", ondelete="CASCADE"), nullable=True, index=True)
    subtask_id = Column(
        Integer, ForeignKey("subtask.id", ondelete="CASCADE"), nullable=True, index=True
    )
    parent_comment_id = Column(Integer, ForeignKey("task_comment.id"), nullable=True)
    content = Column(Text, nullable=False)
    mentioned_user_ids = Column(JSON, nullable=False, default=list)
    edited = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=now_utc_naive)
    updated_at = Column(DateTime, nullable=True)


__all__ = ["CommentModel"]
