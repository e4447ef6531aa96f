"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.domain.entities import (
    Channel,
    Notification,
    NotificationDraft,
    NotificationFilter,
    NotificationPage,
    NotificationType,
    Priority,
    normalize_metadata,
)
from app.infrastructure.models import NotificationModel
from app.utils import ensure_app_timezone, now_utc_naive, to_utc_naive


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_target(
        self,
        target_id: int,
        *,
        filters: NotificationFilter | None = None,
        page: int = 0,
        size: int | None = 20,
    ) -> NotificationPage:
        query = self._filtered_query(target_id, filters or NotificationFilter())
        total = query.count()
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if size is not None:
            query = query.offset(max(page, 0) * size).limit(size)
        items = [self._to_entity(model) for model in query.all()]
        return NotificationPage(
            items=items, total=total, page=page, size=size if size is not None else total
        )

    def count_unread(self, target_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.target_id == target_id)
            .filter(NotificationModel.read_status.is_(False))
            .count()
        )

    def create(self, draft: NotificationDraft) -> Notification:
        model = self._draft_to_model(draft, created_at=now_utc_naive())
        self.session.add(model)
        self._commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def bulk_create(self, drafts: Sequence[NotificationDraft]) -> list[Notification]:
        """Insert every draft in a single transaction.

        Either all rows are stored or, on a database error, none are and the
        error is re-raised after rolling back.
        """

        if not drafts:
            return []
        created_at = now_utc_naive()
        models = [self._draft_to_model(draft, created_at=created_at) for draft in drafts]
        self.session.add_all(models)
        self._commit()
        return [self._to_entity(model) for model in models]

    def mark_as_read(self, notification_id: int) -> None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        now = now_utc_naive()
        model.read_status = True
        model.read_at = now
        model.updated_at = now
        self.session.add(model)
        self._commit()

    def mark_many_as_read(self, notification_ids: Iterable[int], *, target_id: int) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        now = now_utc_naive()
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.id.in_(ids),
                NotificationModel.target_id == target_id,
                NotificationModel.read_status.is_(False),
            )
            .update(
                {
                    NotificationModel.read_status: True,
                    NotificationModel.read_at: now,
                    NotificationModel.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        self._commit()
        return updated

    def mark_all_as_read(self, target_id: int) -> int:
        now = now_utc_naive()
        updated = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.target_id == target_id,
                NotificationModel.read_status.is_(False),
            )
            .update(
                {
                    NotificationModel.read_status: True,
                    NotificationModel.read_at: now,
                    NotificationModel.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        self._commit()
        return updated

    def dismiss(self, notification_id: int) -> None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        now = now_utc_naive()
        model.dismissed_status = True
        model.dismissed_at = now
        model.updated_at = now
        self.session.add(model)
        self._commit()

    def delete(self, notification_id: int) -> bool:
        deleted = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.id == notification_id)
            .delete(synchronize_session=False)
        )
        self._commit()
        return bool(deleted)

    def delete_read_older_than(self, cutoff: datetime) -> int:
        deleted = (
            self.session.query(NotificationModel)
            .filter(
                NotificationModel.read_status.is_(True),
                NotificationModel.created_at < to_utc_naive(cutoff),
            )
            .delete(synchronize_session=False)
        )
        self._commit()
        return deleted

    def exists_recent(
        self,
        *,
        author_id: int,
        target_id: int,
        notification_type: NotificationType,
        since: datetime,
        link: str | None = None,
    ) -> bool:
        query = (
            self.session.query(NotificationModel.id)
            .filter(NotificationModel.author_id == author_id)
            .filter(NotificationModel.target_id == target_id)
            .filter(NotificationModel.notification_type == notification_type.value)
            .filter(NotificationModel.created_at >= to_utc_naive(since))
        )
        if link is not None:
            query = query.filter(NotificationModel.link == link)
        return query.first() is not None

    def _filtered_query(self, target_id: int, filters: NotificationFilter) -> Query:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.target_id == target_id
        )
        if filters.unread_only:
            query = query.filter(NotificationModel.read_status.is_(False))
        if filters.active_only:
            query = query.filter(NotificationModel.dismissed_status.is_(False))
        if filters.notification_type is not None:
            query = query.filter(
                NotificationModel.notification_type == filters.notification_type.value
            )
        if filters.priority is not None:
            query = query.filter(NotificationModel.priority == filters.priority.value)
        return query

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    @staticmethod
    def _draft_to_model(draft: NotificationDraft, *, created_at: datetime) -> NotificationModel:
        model = NotificationModel()
        model.author_id = draft.author_id
        model.target_id = draft.target_id
        model.notification_type = NotificationType(draft.notification_type).value
        model.subject = draft.subject
        model.message = draft.message
        model.channels = [Channel(channel).value for channel in draft.channels]
        model.priority = Priority(draft.priority).value
        model.link = draft.link
        model.metadata_ = normalize_metadata(draft.metadata)
        model.read_status = False
        model.dismissed_status = False
        model.created_at = created_at
        return model

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            author_id=model.author_id,
            target_id=model.target_id,
            notification_type=NotificationType(model.notification_type),
            subject=model.subject,
            message=model.message,
            channels=tuple(Channel(channel) for channel in (model.channels or [])),
            priority=Priority(model.priority),
            link=model.link,
            metadata=model.metadata_,
            read_status=bool(model.read_status),
            read_at=ensure_app_timezone(model.read_at),
            dismissed_status=bool(model.dismissed_status),
            dismissed_at=ensure_app_timezone(model.dismissed_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationRepository"]
