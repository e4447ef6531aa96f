"""Tests for the pre-due and overdue task reminders."""

from __future__ import annotations

import json
import logging
from datetime import timedelta

import pytest

from app.application.use_cases.notifications import (
    NotificationDelivery,
    check_task_deadlines,
)
from app.domain.entities import Channel, NotificationType, Priority
from app.infrastructure.models import NotificationModel
from app.utils import now_utc_naive
from scripts import check_task_deadlines as deadline_script


@pytest.fixture()
def delivery(email_dispatcher, realtime_publisher, settings):
    return NotificationDelivery(
        email_dispatcher=email_dispatcher,
        realtime_publisher=realtime_publisher,
        settings=settings,
    )


@pytest.fixture()
def team(make_user):
    for user_id in (100, 200, 300):
        make_user(user_id)


def test_tasks_due_soon_remind_each_assignee_once(
    session, delivery, settings, make_task, team, email_dispatcher, realtime_publisher
):
    now = now_utc_naive()
    task = make_task(
        title="Quarterly report", assignee_ids=[200, 300], due_at=now + timedelta(hours=3)
    )

    result = check_task_deadlines(session, delivery, settings=settings, now=now)

    assert result.overdue == []
    assert sorted(n.target_id for n in result.pre_due) == [200, 300]
    reminder = result.pre_due[0]
    assert reminder.notification_type == NotificationType.TASK_DEADLINE_APPROACHING
    assert reminder.priority == Priority.HIGH
    assert reminder.channels == (Channel.IN_APP, Channel.EMAIL)
    assert reminder.author_id == 100
    assert reminder.subject == "Task due soon"
    assert reminder.message.startswith(
        'Task "Quarterly report" is due in less than 24 hours (due '
    )
    assert reminder.link == f"/tasks/{task.id}?highlight=due-date"
    metadata = json.loads(reminder.metadata)
    assert metadata["reminder"] == "PRE_DUE"
    assert metadata["taskId"] == task.id
    assert sorted(email_dispatcher.recipients) == ["user200@example.com", "user300@example.com"]
    assert len(realtime_publisher.dispatched) == 2

    again = check_task_deadlines(session, delivery, settings=settings, now=now)

    assert again.total == 0
    assert again.skipped == 2
    assert len(email_dispatcher.sent) == 2
    assert session.query(NotificationModel).count() == 2


def test_overdue_tasks_are_reminded_again_after_the_interval(
    session, delivery, settings, make_task, team, email_dispatcher
):
    now = now_utc_naive()
    task = make_task(title="Invoice", assignee_ids=[200], due_at=now - timedelta(hours=2))

    first = check_task_deadlines(session, delivery, settings=settings, now=now)

    [reminder] = first.overdue
    assert reminder.subject == "Task overdue"
    assert reminder.message.startswith('Task "Invoice" is overdue (was due ')
    assert reminder.link == f"/tasks/{task.id}?highlight=overdue"

    assert check_task_deadlines(session, delivery, settings=settings, now=now).skipped == 1

    later = now + timedelta(hours=settings.overdue_reminder_interval_hours + 1)
    assert len(check_task_deadlines(session, delivery, settings=settings, now=later).overdue) == 1
    assert email_dispatcher.recipients == ["user200@example.com", "user200@example.com"]


def test_pre_due_reminder_does_not_suppress_the_overdue_one(
    session, delivery, settings, make_task, team
):
    now = now_utc_naive()
    make_task(assignee_ids=[200], due_at=now + timedelta(hours=1))

    assert len(check_task_deadlines(session, delivery, settings=settings, now=now).pre_due) == 1

    after_due = now + timedelta(hours=2)
    result = check_task_deadlines(session, delivery, settings=settings, now=after_due)

    assert len(result.overdue) == 1
    assert result.skipped == 0


def test_tasks_outside_the_window_or_finished_are_ignored(
    session, delivery, settings, make_task, team, email_dispatcher
):
    now = now_utc_naive()
    make_task(assignee_ids=[200], due_at=now + timedelta(hours=48))
    make_task(assignee_ids=[200], due_at=now + timedelta(hours=2), status="COMPLETED")
    make_task(assignee_ids=[200])

    result = check_task_deadlines(session, delivery, settings=settings, now=now)

    assert result.total == 0
    assert email_dispatcher.sent == []
    assert session.query(NotificationModel).count() == 0


def test_owner_is_reminded_when_assigned(session, delivery, settings, make_task, team):
    now = now_utc_naive()
    make_task(owner_id=100, assignee_ids=[100], due_at=now + timedelta(hours=5))

    result = check_task_deadlines(session, delivery, settings=settings, now=now)

    assert [n.target_id for n in result.pre_due] == [100]


def test_tasks_without_assignees_are_logged_and_skipped(
    session, delivery, settings, make_task, caplog
):
    now = now_utc_naive()
    task = make_task(due_at=now + timedelta(hours=1))

    with caplog.at_level(logging.WARNING):
        result = check_task_deadlines(session, delivery, settings=settings, now=now)

    assert result.total == 0
    assert f"Task {task.id} is due" in caplog.text


def test_lead_window_follows_settings(session, delivery, settings, make_task, team):
    now = now_utc_naive()
    make_task(assignee_ids=[200], due_at=now + timedelta(hours=30))
    wider = settings.model_copy(update={"deadline_reminder_hours": 36})

    [reminder] = check_task_deadlines(session, delivery, settings=wider, now=now).pre_due

    assert "less than 36 hours" in reminder.message


def test_script_runs_one_check(
    session, session_factory, make_task, team, email_dispatcher, monkeypatch, capsys
):
    make_task(assignee_ids=[200], due_at=now_utc_naive() + timedelta(hours=1))
    monkeypatch.setattr(deadline_script, "SessionLocal", session_factory)
    monkeypatch.setattr(deadline_script, "initialize_database", lambda: None)
    monkeypatch.setattr(deadline_script, "EmailDispatcher", lambda: email_dispatcher)

    assert deadline_script.main([]) == 1
    assert "Created 1 pre-due and 0 overdue reminder(s)" in capsys.readouterr().out
    assert email_dispatcher.recipients == ["user200@example.com"]
    assert email_dispatcher.shutdown_called is True


def test_script_rejects_non_positive_lead_hours():
    with pytest.raises(SystemExit):
        deadline_script.main(["--lead-hours", "0"])
