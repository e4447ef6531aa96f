"""Use case for editing an existing comment."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from sqlalchemy.orm import Session

from app.application.use_cases.notifications import mention_diff
from app.domain.entities import Comment
from app.domain.events import MentionEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import CommentRepository

from .validators import resolve_comment_target, validate_mentions

logger = logging.getLogger(__name__)


def update_comment(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    comment_id: int,
    editor_id: int,
    content: str,
    mentioned_user_ids: Sequence[int] | None = None,
) -> Comment:
    """Edit a comment and notify only the users it newly mentions."""

    repository = CommentRepository(session)
    current = repository.get(comment_id)
    if current is None:
        raise ValueError("Comment not found")
    if current.author_id != editor_id:
        raise PermissionError("Only the author can edit this comment")
    if not content or not content.strip():
        raise ValueError("Comment content must not be blank")

    target = resolve_comment_target(
        session, task_id=current.task_id, subtask_id=current.subtask_id
    )
    mentions = validate_mentions(session, target.project_id, mentioned_user_ids or ())
    added = mention_diff(current.mentioned_user_ids, mentions)

    updated = repository.update(replace(current, content=content, mentioned_user_ids=mentions))
    logger.info("Comment %s edited by user %s", comment_id, editor_id)

    if not added:
        return updated

    publisher.publish_comment_event(
        MentionEvent(
            author_id=editor_id,
            comment_id=updated.id,
            task_id=updated.task_id,
            subtask_id=updated.subtask_id,
            project_id=target.project_id,
            task_title=target.title,
            content=content,
            mentioned_user_ids=added,
        )
    )
    return updated
