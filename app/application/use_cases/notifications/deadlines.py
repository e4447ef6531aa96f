"""Remind assignees about tasks that are about to fall due or are overdue."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.domain.entities import Notification, NotificationDraft, Task
from app.infrastructure.repositories import TaskRepository
from app.utils import ensure_app_timezone, now_utc_naive, to_utc_naive

from .delivery import NotificationDelivery
from .routing import DEADLINE_POLICIES, UNTITLED_TASK, NotificationPolicy
from .store import has_recent_similar_notification

logger = logging.getLogger(__name__)

PRE_DUE = "PRE_DUE"
OVERDUE = "OVERDUE"

_DUE_FORMAT = "%b %d, %Y %H:%M %Z"


@dataclass
class DeadlineReminderResult:
    """Reminders created by one deadline check."""

    pre_due: list[Notification] = field(default_factory=list)
    overdue: list[Notification] = field(default_factory=list)
    skipped: int = 0

    @property
    def total(self) -> int:
        return len(self.pre_due) + len(self.overdue)


def check_task_deadlines(
    session: Session,
    delivery: NotificationDelivery,
    *,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> DeadlineReminderResult:
    """Create reminders for the assignees of unfinished tasks with a due date.

    A task due within ``deadline_reminder_hours`` gets one pre-due reminder
    per assignee. Once the due date has passed, assignees are reminded again
    at most every ``overdue_reminder_interval_hours``. Reminders already sent
    inside those windows are skipped. Storage errors propagate.
    """

    settings = settings or get_settings()
    now = to_utc_naive(now) if now is not None else now_utc_naive()
    cutoff = now + timedelta(hours=settings.deadline_reminder_hours)

    tasks = TaskRepository(session).list_open_due_before(cutoff)
    logger.info("Checking %d task(s) due before %s", len(tasks), cutoff)

    result = DeadlineReminderResult()
    drafts: list[NotificationDraft] = []
    kinds: list[str] = []
    for task in tasks:
        if not task.assignee_ids:
            logger.warning("Task %s is due at %s but has no assignees", task.id, task.due_at)
            continue

        kind = PRE_DUE if task.due_at > now else OVERDUE
        policy = DEADLINE_POLICIES[kind]
        window_hours = (
            settings.deadline_reminder_hours
            if kind == PRE_DUE
            else settings.overdue_reminder_interval_hours
        )
        link = _task_link(task, policy)

        for user_id in dict.fromkeys(task.assignee_ids):
            if has_recent_similar_notification(
                session,
                author_id=task.owner_id,
                target_id=user_id,
                notification_type=policy.notification_type,
                within_minutes=window_hours * 60,
                link=link,
                now=now,
            ):
                logger.debug("User %s was already reminded about task %s", user_id, task.id)
                result.skipped += 1
                continue
            drafts.append(_build_draft(task, user_id, kind, policy, link, settings))
            kinds.append(kind)

    for notification, kind in zip(delivery.deliver(session, drafts), kinds):
        if kind == PRE_DUE:
            result.pre_due.append(notification)
        else:
            result.overdue.append(notification)

    logger.info(
        "Created %d pre-due and %d overdue reminder(s), skipped %d",
        len(result.pre_due),
        len(result.overdue),
        result.skipped,
    )
    return result


def _build_draft(
    task: Task,
    user_id: int,
    kind: str,
    policy: NotificationPolicy,
    link: str,
    settings: Settings,
) -> NotificationDraft:
    message = policy.render_message(
        title=task.title or UNTITLED_TASK,
        hours=str(settings.deadline_reminder_hours),
        due=ensure_app_timezone(task.due_at).strftime(_DUE_FORMAT),
    )
    metadata = json.dumps(
        {
            "eventType": policy.notification_type.value,
            "reminder": kind,
            "taskId": task.id,
            "dueAt": task.due_at.isoformat(),
        }
    )
    return NotificationDraft(
        author_id=task.owner_id,
        target_id=user_id,
        notification_type=policy.notification_type,
        subject=policy.subject,
        message=message,
        channels=policy.channels,
        priority=policy.priority,
        link=link,
        metadata=metadata,
    )


def _task_link(task: Task, policy: NotificationPolicy) -> str:
    return f"/tasks/{task.id}?highlight={policy.highlight}"


__all__ = ["DeadlineReminderResult", "OVERDUE", "PRE_DUE", "check_task_deadlines"]
