"""Use case for posting a comment on a task or subtask."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Comment
from app.domain.events import CommentCreatedEvent, CommentReplyEvent
from app.infrastructure.messaging import NotificationEventPublisher
from app.infrastructure.repositories import CommentRepository

from .validators import resolve_comment_target, validate_mentions

logger = logging.getLogger(__name__)


def create_comment(
    session: Session,
    publisher: NotificationEventPublisher,
    *,
    author_id: int,
    content: str,
    task_id: int | None = None,
    subtask_id: int | None = None,
    mentioned_user_ids: Sequence[int] | None = None,
    parent_comment_id: int | None = None,
) -> Comment:
    """Store a new comment and announce it to the notification pipeline.

    Replying to somebody else's comment emits a reply event for that author;
    every other comment emits a comment-created event carrying its mentions.
    """

    if not content or not content.strip():
        raise ValueError("Comment content must not be blank")

    target = resolve_comment_target(session, task_id=task_id, subtask_id=subtask_id)
    mentions = validate_mentions(session, target.project_id, mentioned_user_ids or ())

    repository = CommentRepository(session)
    parent = None
    if parent_comment_id is not None:
        parent = repository.get(parent_comment_id)
        if parent is None:
            raise ValueError("Parent comment not found")

    comment = repository.create(
        Comment(
            id=None,
            author_id=author_id,
            content=content,
            task_id=task_id,
            subtask_id=subtask_id,
            parent_comment_id=parent_comment_id,
            mentioned_user_ids=mentions,
        )
    )
    logger.info("Comment %s created by user %s", comment.id, author_id)

    fields = dict(
        author_id=author_id,
        comment_id=comment.id,
        task_id=task_id,
        subtask_id=subtask_id,
        project_id=target.project_id,
        task_title=target.title,
        content=content,
        mentioned_user_ids=mentions,
    )
    if parent is not None and parent.author_id != author_id:
        event = CommentReplyEvent(parent_comment_author_id=parent.author_id, **fields)
    else:
        event = CommentCreatedEvent(**fields)

    publisher.publish_comment_event(event)
    return comment
