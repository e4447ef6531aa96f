"""Tests for the comment and task use cases that publish notification events."""

from __future__ import annotations

from datetime import datetime

import pytest

from app.application.use_cases import (
    assign_users,
    change_task_status,
    create_comment,
    create_task,
    unassign_users,
    update_comment,
    update_task,
)
from app.domain.entities import Subtask
from app.domain.events import (
    CommentCreatedEvent,
    CommentReplyEvent,
    MentionEvent,
    StatusUpdatedEvent,
    TaskAssignedEvent,
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskUnassignedEvent,
    TaskUpdatedEvent,
)
from app.infrastructure.repositories import CommentRepository, TaskRepository, UserRepository


class RecordingPublisher:
    """Stand-in for the event publisher that keeps every event."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.events = []

    def publish_comment_event(self, event) -> bool:
        self.events.append(event)
        return self.result

    def publish_task_event(self, event) -> bool:
        self.events.append(event)
        return self.result


@pytest.fixture()
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture()
def project(session, make_user):
    users = UserRepository(session)
    for user_id in (100, 200, 300, 400):
        make_user(user_id)
        users.add_project_member(1, user_id)
    return 1


def test_create_comment_publishes_created_event(session, publisher, project, make_task):
    task = make_task(title="Design review", assignee_ids=[200])

    comment = create_comment(
        session,
        publisher,
        author_id=100,
        content="Please check",
        task_id=task.id,
        mentioned_user_ids=[300, 300],
    )

    assert comment.id is not None
    [event] = publisher.events
    assert isinstance(event, CommentCreatedEvent)
    assert event.comment_id == comment.id
    assert event.task_title == "Design review"
    assert event.project_id == project
    assert event.mentioned_user_ids == [300]


def test_reply_to_another_users_comment_publishes_reply_event(
    session, publisher, project, make_task
):
    task = make_task(assignee_ids=[200])
    parent = create_comment(session, publisher, author_id=200, content="Q?", task_id=task.id)

    create_comment(
        session,
        publisher,
        author_id=100,
        content="A!",
        task_id=task.id,
        parent_comment_id=parent.id,
    )

    reply = publisher.events[-1]
    assert isinstance(reply, CommentReplyEvent)
    assert reply.parent_comment_author_id == 200


def test_reply_to_own_comment_is_a_plain_comment(session, publisher, project, make_task):
    task = make_task()
    parent = create_comment(session, publisher, author_id=100, content="Q?", task_id=task.id)

    create_comment(
        session, publisher, author_id=100, content="more", task_id=task.id, parent_comment_id=parent.id
    )

    assert isinstance(publisher.events[-1], CommentCreatedEvent)


def test_comment_on_subtask_resolves_parent_task(session, publisher, project, make_task):
    task = make_task(title="Parent")
    subtask = TaskRepository(session).create_subtask(Subtask(id=None, task_id=task.id, title="Child"))

    create_comment(session, publisher, author_id=100, content="hi", subtask_id=subtask.id)

    event = publisher.events[0]
    assert event.subtask_id == subtask.id
    assert event.task_id is None
    assert event.task_title == "Parent"


def test_mentioning_non_members_is_rejected(session, publisher, project, make_task):
    task = make_task()

    with pytest.raises(ValueError):
        create_comment(
            session, publisher, author_id=100, content="hi", task_id=task.id, mentioned_user_ids=[999]
        )
    assert publisher.events == []


def test_comment_is_stored_even_if_publish_fails(session, project, make_task):
    failing = RecordingPublisher(result=False)
    task = make_task()

    comment = create_comment(session, failing, author_id=100, content="hi", task_id=task.id)

    assert CommentRepository(session).get(comment.id) is not None


def test_update_comment_publishes_only_added_mentions(session, publisher, project, make_task):
    task = make_task()
    comment = create_comment(
        session, publisher, author_id=100, content="hi", task_id=task.id, mentioned_user_ids=[200, 300]
    )

    updated = update_comment(
        session,
        publisher,
        comment_id=comment.id,
        editor_id=100,
        content="hi all",
        mentioned_user_ids=[300, 400],
    )

    assert updated.edited is True
    assert updated.mentioned_user_ids == [300, 400]
    event = publisher.events[-1]
    assert isinstance(event, MentionEvent)
    assert event.mentioned_user_ids == [400]


def test_update_comment_without_new_mentions_publishes_nothing(
    session, publisher, project, make_task
):
    task = make_task()
    comment = create_comment(
        session, publisher, author_id=100, content="hi", task_id=task.id, mentioned_user_ids=[200, 300]
    )
    publisher.events.clear()

    update_comment(
        session, publisher, comment_id=comment.id, editor_id=100, content="edit", mentioned_user_ids=[200]
    )

    assert publisher.events == []


def test_only_the_author_can_edit_a_comment(session, publisher, project, make_task):
    task = make_task()
    comment = create_comment(session, publisher, author_id=100, content="hi", task_id=task.id)

    with pytest.raises(PermissionError):
        update_comment(session, publisher, comment_id=comment.id, editor_id=200, content="x")


def test_create_task_notifies_initial_assignees(session, publisher):
    task = create_task(
        session, publisher, owner_id=1, title=" Plan ", project_id=1, assignee_ids=[2, 3]
    )

    [event] = publisher.events
    assert isinstance(event, TaskCreatedEvent)
    assert event.task_id == task.id
    assert event.task_title == "Plan"
    assert event.assigned_user_ids == [2, 3]


def test_create_task_without_assignees_publishes_nothing(session, publisher):
    create_task(session, publisher, owner_id=1, title="Solo")

    assert publisher.events == []


def test_create_task_stores_due_date(session, publisher):
    due_at = datetime(2026, 3, 1, 9, 30)

    task = create_task(session, publisher, owner_id=1, title="Ship", due_at=due_at)

    assert task.due_at == due_at
    assert TaskRepository(session).get(task.id).due_at == due_at


def test_assign_users_publishes_only_new_assignees(session, publisher, make_task):
    task = make_task(assignee_ids=[2])

    result = assign_users(session, publisher, task_id=task.id, user_ids=[2, 3, 4], assigned_by=1)

    assert result.assignee_ids == [2, 3, 4]
    [event] = publisher.events
    assert isinstance(event, TaskAssignedEvent)
    assert event.assigned_user_ids == [3, 4]


def test_unassign_users_publishes_removed_users(session, publisher, make_task):
    task = make_task(assignee_ids=[2, 3])

    result = unassign_users(session, publisher, task_id=task.id, user_ids=[3, 9], removed_by=1)

    assert result.assignee_ids == [2]
    [event] = publisher.events
    assert isinstance(event, TaskUnassignedEvent)
    assert event.assigned_user_ids == [3]


def test_update_task_publishes_update_with_status(session, publisher, make_task):
    task = make_task(assignee_ids=[2], status="IN_PROGRESS")

    update_task(session, publisher, task_id=task.id, updated_by=1, description="More detail")

    [event] = publisher.events
    assert isinstance(event, TaskUpdatedEvent)
    assert event.task_status == "IN_PROGRESS"
    assert event.task_description == "More detail"


@pytest.mark.parametrize(
    ("new_status", "event_class"),
    [("IN_PROGRESS", StatusUpdatedEvent), ("COMPLETED", TaskCompletedEvent)],
)
def test_change_task_status_publishes_matching_event(
    session, publisher, make_task, new_status, event_class
):
    task = make_task(assignee_ids=[2, 3])

    change_task_status(session, publisher, task_id=task.id, status=new_status, changed_by=2)

    [event] = publisher.events
    assert isinstance(event, event_class)
    assert event.author_id == 2
    if isinstance(event, StatusUpdatedEvent):
        assert event.prev_task_status == "TODO"
        assert event.task_status == "IN_PROGRESS"


def test_change_to_same_status_is_a_no_op(session, publisher, make_task):
    task = make_task(assignee_ids=[2])

    change_task_status(session, publisher, task_id=task.id, status="TODO", changed_by=1)

    assert publisher.events == []


def test_change_task_status_rejects_unknown_status(session, publisher, make_task):
    task = make_task()

    with pytest.raises(ValueError):
        change_task_status(session, publisher, task_id=task.id, status="DONE", changed_by=1)
