"""End-to-end tests: producer use case, broker, consumer and store."""

from __future__ import annotations

import pytest

from app.application.use_cases import create_comment, create_task
from app.application.use_cases.notifications import (
    build_notification_pipeline,
    list_notifications,
)
from app.domain.entities import NotificationType
from app.infrastructure.messaging import (
    COMMENT_BINDING,
    COMMENT_QUEUE,
    TASK_BINDING,
    TASK_QUEUE,
    InMemoryBroker,
)
from app.infrastructure.repositories import NotificationRepository, UserRepository


@pytest.fixture()
def pipeline(session_factory, email_dispatcher, realtime_publisher, settings):
    broker = InMemoryBroker(max_retries=1, workers_per_queue=1)
    broker.declare_queue(COMMENT_QUEUE, COMMENT_BINDING)
    broker.declare_queue(TASK_QUEUE, TASK_BINDING)
    pipeline = build_notification_pipeline(
        session_factory=session_factory,
        email_dispatcher=email_dispatcher,
        realtime_publisher=realtime_publisher,
        settings=settings,
        broker=broker,
    )
    pipeline.start()
    yield pipeline
    pipeline.shutdown()


def test_task_creation_reaches_assignees(session, pipeline, make_user, email_dispatcher):
    for user_id in (1, 2, 3):
        make_user(user_id)

    create_task(
        session, pipeline.publisher, owner_id=1, title="Ship it", assignee_ids=[1, 2, 3]
    )
    pipeline.broker.join()

    assert list_notifications(session, 1).total == 0
    for user_id in (2, 3):
        [notification] = list_notifications(session, user_id).items
        assert notification.notification_type is NotificationType.TASK_ASSIGNED
        assert notification.subject == "New task assigned to you"
    assert sorted(email_dispatcher.recipients) == ["user2@example.com", "user3@example.com"]


def test_comment_flow_notifies_assignees_and_mentions(session, pipeline, make_user, make_task):
    users = UserRepository(session)
    for user_id in (100, 200, 300, 400):
        make_user(user_id)
        users.add_project_member(1, user_id)
    task = make_task(assignee_ids=[200, 300, 400])

    create_comment(
        session,
        pipeline.publisher,
        author_id=100,
        content="@200 @300 thoughts?",
        task_id=task.id,
        mentioned_user_ids=[200, 300],
    )
    pipeline.broker.join()

    assert sum(list_notifications(session, user_id).total for user_id in (200, 300, 400)) == 5
    assert list_notifications(session, 100).total == 0


def test_storage_failures_are_retried_then_dead_lettered(
    session, pipeline, make_user, monkeypatch
):
    from sqlalchemy.exc import SQLAlchemyError

    make_user(2)

    def failing_bulk_create(self, drafts):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(NotificationRepository, "bulk_create", failing_bulk_create)

    create_task(session, pipeline.publisher, owner_id=1, title="Doomed", assignee_ids=[2])
    pipeline.broker.join()

    [dead] = pipeline.broker.dead_letters
    assert dead.queue == TASK_QUEUE
    assert dead.attempts == 2
    assert "database unavailable" in dead.error
