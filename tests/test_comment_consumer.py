"""Tests for the comment notification consumer."""

from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import CommentNotificationConsumer
from app.domain.entities import Channel, NotificationType, Priority
from app.domain.entities import Subtask
from app.domain.events import CommentCreatedEvent, CommentReplyEvent, MentionEvent
from app.infrastructure.models import NotificationModel
from app.infrastructure.repositories import NotificationRepository, TaskRepository, UserRepository


@pytest.fixture()
def consumer(session_factory, email_dispatcher, realtime_publisher, settings):
    return CommentNotificationConsumer(
        session_factory=session_factory,
        email_dispatcher=email_dispatcher,
        realtime_publisher=realtime_publisher,
        settings=settings,
    )


@pytest.fixture()
def team(make_user):
    for user_id in (100, 200, 300, 400):
        make_user(user_id)


def test_comment_without_mentions_notifies_each_assignee(
    consumer, session, make_task, team, email_dispatcher, realtime_publisher
):
    task = make_task(title="Quarterly report", assignee_ids=[200, 300])
    event = CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="Looks good")

    saved = consumer.handle(event.to_message())

    assert len(saved) == 2
    assert {n.target_id for n in saved} == {200, 300}
    assert {n.notification_type for n in saved} == {NotificationType.COMMENT_REPLY}
    assert {n.priority for n in saved} == {Priority.MEDIUM}
    assert saved[0].subject == "New comment on your task"
    assert saved[0].message == 'New comment on "Quarterly report": "Looks good"'
    assert saved[0].link == f"/tasks/{task.id}?highlight=comments"
    assert sorted(email_dispatcher.recipients) == ["user200@example.com", "user300@example.com"]
    assert len(realtime_publisher.dispatched) == 2
    assert session.query(NotificationModel).count() == 2


def test_null_mention_list_still_notifies_assignees(consumer, make_task, team, email_dispatcher):
    task = make_task(assignee_ids=[200])
    message = CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id).to_message()
    message["mentionedUserIds"] = None

    saved = consumer.handle(message)

    assert [n.target_id for n in saved] == [200]
    assert email_dispatcher.recipients == ["user200@example.com"]


def test_mentions_and_assignees_are_not_deduplicated_but_emails_are(
    consumer, session, make_task, team, email_dispatcher
):
    task = make_task(assignee_ids=[200, 300, 400])
    event = CommentCreatedEvent(
        author_id=100,
        comment_id=1,
        task_id=task.id,
        content="@200 @300 please review",
        mentioned_user_ids=[200, 300],
    )

    saved = consumer.handle(event.to_message())

    by_type = {}
    for notification in saved:
        by_type.setdefault(notification.notification_type, []).append(notification.target_id)
    assert len(saved) == 5
    assert sorted(by_type[NotificationType.MENTION]) == [200, 300]
    assert sorted(by_type[NotificationType.COMMENT_REPLY]) == [200, 300, 400]
    assert len(email_dispatcher.sent) == 3
    subjects = {email.recipient: email.subject for email in email_dispatcher.sent}
    # The higher-priority mention wins the email for users with both reasons.
    assert subjects["user200@example.com"] == "You were mentioned in a comment"
    assert subjects["user400@example.com"] == "New comment on your task"


def test_author_never_receives_a_notification(consumer, make_task, team, email_dispatcher):
    task = make_task(assignee_ids=[100, 200])
    event = CommentCreatedEvent(
        author_id=100, comment_id=1, task_id=task.id, content="note", mentioned_user_ids=[100]
    )

    saved = consumer.handle(event.to_message())

    assert [n.target_id for n in saved] == [200]
    assert email_dispatcher.recipients == ["user200@example.com"]


def test_reply_notifies_parent_comment_author(consumer, make_task, team, email_dispatcher):
    task = make_task(assignee_ids=[300])
    event = CommentReplyEvent(
        author_id=100,
        comment_id=2,
        task_id=task.id,
        content="Thanks!",
        parent_comment_author_id=200,
    )

    saved = consumer.handle(event.to_message())

    assert [(n.target_id, n.notification_type) for n in saved] == [
        (200, NotificationType.COMMENT_REPLY)
    ]
    assert saved[0].subject == "Reply to your comment"
    assert saved[0].message == 'New reply: "Thanks!"'
    assert email_dispatcher.recipients == ["user200@example.com"]


def test_mention_event_on_subtask_uses_parent_task(
    consumer, session, make_task, team, email_dispatcher
):
    task = make_task(title="Launch", assignee_ids=[400])
    subtask = TaskRepository(session).create_subtask(Subtask(id=None, task_id=task.id, title="Docs"))
    event = MentionEvent(
        author_id=100,
        comment_id=3,
        subtask_id=subtask.id,
        content="see this",
        mentioned_user_ids=[300],
    )

    saved = consumer.handle(event.to_message())

    assert [(n.target_id, n.notification_type, n.priority) for n in saved] == [
        (300, NotificationType.MENTION, Priority.HIGH)
    ]
    assert saved[0].message == 'You were mentioned in "Launch": "see this"'
    assert saved[0].link == f"/subtasks/{subtask.id}?highlight=comments"
    assert saved[0].channels == (Channel.IN_APP, Channel.EMAIL)


def test_missing_task_uses_placeholder_title(consumer, team):
    event = CommentCreatedEvent(
        author_id=100, comment_id=1, task_id=999, content="hi", mentioned_user_ids=[200]
    )

    saved = consumer.handle(event.to_message())

    assert [n.target_id for n in saved] == [200]
    assert saved[0].notification_type is NotificationType.MENTION


def test_no_assignees_and_no_mentions_does_nothing(
    consumer, session, make_task, email_dispatcher, monkeypatch
):
    task = make_task(assignee_ids=[])
    calls = []
    monkeypatch.setattr(
        NotificationRepository, "bulk_create", lambda self, drafts: calls.append(drafts)
    )

    saved = consumer.handle(
        CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="x").to_message()
    )

    assert saved == []
    assert calls == []
    assert email_dispatcher.sent == []


def test_storage_failure_propagates_and_sends_nothing(
    consumer, make_task, team, email_dispatcher, realtime_publisher, monkeypatch
):
    task = make_task(assignee_ids=[200, 300])

    def failing_bulk_create(self, drafts):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(NotificationRepository, "bulk_create", failing_bulk_create)

    with pytest.raises(SQLAlchemyError):
        consumer.handle(
            CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="x").to_message()
        )

    assert email_dispatcher.sent == []
    assert realtime_publisher.dispatched == []


def test_failed_lookup_or_blank_email_skips_only_that_recipient(
    consumer, make_task, make_user, email_dispatcher, monkeypatch
):
    make_user(200)
    make_user(300, email="   ")
    make_user(400)
    task = make_task(assignee_ids=[200, 300, 400])
    original_get = UserRepository.get

    def flaky_get(self, user_id):
        if user_id == 400:
            raise RuntimeError("profile service down")
        return original_get(self, user_id)

    monkeypatch.setattr(UserRepository, "get", flaky_get)

    saved = consumer.handle(
        CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="x").to_message()
    )

    assert len(saved) == 3
    assert email_dispatcher.recipients == ["user200@example.com"]


def test_email_dispatch_errors_do_not_fail_the_batch(
    consumer, make_task, team, email_dispatcher, monkeypatch
):
    task = make_task(assignee_ids=[200, 300])
    original_dispatch = email_dispatcher.dispatch

    def dispatch(recipient, *args, **kwargs):
        if recipient == "user200@example.com":
            raise RuntimeError("executor closed")
        return original_dispatch(recipient, *args, **kwargs)

    monkeypatch.setattr(email_dispatcher, "dispatch", dispatch)

    saved = consumer.handle(
        CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="x").to_message()
    )

    assert len(saved) == 2
    assert email_dispatcher.recipients == ["user300@example.com"]


@pytest.mark.parametrize(
    "payload",
    [
        {"eventType": "COMMENT_DELETED", "authorId": 1, "commentId": 1, "taskId": 1},
        {"eventType": "COMMENT_REPLY", "authorId": 1, "commentId": 1, "taskId": 1},
        "not json at all",
    ],
)
def test_unknown_or_malformed_events_are_dropped(
    consumer, session, email_dispatcher, payload, caplog
):
    with caplog.at_level(logging.WARNING):
        assert consumer.handle(payload) == []

    assert "Dropping malformed or unknown comment event" in caplog.text
    assert session.query(NotificationModel).count() == 0
    assert email_dispatcher.sent == []


def test_email_body_contains_message_and_absolute_link(consumer, make_task, team, email_dispatcher):
    task = make_task(title="Budget <draft>", assignee_ids=[200])

    consumer.handle(
        CommentCreatedEvent(author_id=100, comment_id=1, task_id=task.id, content="ok").to_message()
    )

    email = email_dispatcher.sent[0]
    assert email.plain_text_content == (
        "Hello,\n\n"
        'New comment on "Budget <draft>": "ok"\n\n'
        f"Click here to view: https://app.example.com/tasks/{task.id}?highlight=comments\n\n"
        "Best regards,\nThe Test Team"
    )
    assert "Budget &lt;draft&gt;" in email.html_content
    assert "View Details" in email.html_content
