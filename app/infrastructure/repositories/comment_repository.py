"""Persistence layer for task comments."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import Comment
from app.infrastructure.models import CommentModel
from app.utils import now_utc_naive


class CommentRepository:
    """Provide CRUD operations for :class:`Comment` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, comment_id: int) -> Comment | None:
        model = self.session.get(CommentModel, comment_id)
        return self._to_entity(model) if model else None

    def create(self, comment: Comment) -> Comment:
        model = CommentModel(
            author_id=comment.author_id,
            task_id=comment.task_id,
            subtask_id=comment.subtask_id,
            parent_comment_id=comment.parent_comment_id,
            content=comment.content,
            mentioned_user_ids=list(comment.mentioned_user_ids),
            edited=False,
            created_at=now_utc_naive(),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, comment: Comment) -> Comment:
        model = self.session.get(CommentModel, comment.id)
        if model is None:
            msg = f"Comment with id {comment.id} not found"
            raise ValueError(msg)
        model.content = comment.content
        model.mentioned_user_ids = list(comment.mentioned_user_ids)
        model.edited = True
        model.updated_at = now_utc_naive()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: CommentModel) -> Comment:
        return Comment(
            id=model.id,
            author_id=model.author_id,
            content=model.content,
            task_id=model.task_id,
            subtask_id=model.subtask_id,
            parent_comment_id=model.parent_comment_id,
            mentioned_user_ids=list(model.mentioned_user_ids or []),
            edited=bool(model.edited),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


__all__ = ["CommentRepository"]
