"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import expression

from app.infrastructure.database import Base
from app.utils import now_utc_naive


class NotificationModel(Base):
    """Database representation for recipient-scoped notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_target_read", "target_id", "read_status"),
        Index("ix_notification_author_target_type", "author_id", "target_id", "notification_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, nullable=False)
    target_id = Column(Integer, nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    channels = Column(JSON, nullable=False, default=list)
    priority = Column(String(20), nullable=False, default="MEDIUM")
    link = Column(String(500), nullable=True)
    # ``metadata`` is reserved on declarative classes.
    metadata_ = Column("metadata", Text, nullable=True)
    read_status = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    read_at = Column(DateTime(), nullable=True)
    dismissed_status = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    dismissed_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_utc_naive, index=True)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationModel"]
