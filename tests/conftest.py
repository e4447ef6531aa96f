"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os
import sys
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from app.config import Settings, reset_settings_cache  # noqa: E402
from app.domain.entities import Task, User  # noqa: E402
from app.infrastructure.database import (  # noqa: E402
    build_engine,
    build_session_factory,
    initialize_database,
)
from app.infrastructure.repositories import TaskRepository, UserRepository  # noqa: E402

reset_settings_cache()


@dataclass
class SentEmail:
    recipient: str
    subject: str
    html_content: str
    plain_text_content: str | None


class RecordingEmailDispatcher:
    """Collect dispatched emails instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[SentEmail] = []
        self.shutdown_called = False

    def dispatch(self, recipient, subject, html_content, plain_text_content=None):
        self.sent.append(SentEmail(recipient, subject, html_content, plain_text_content))
        future: Future[bool] = Future()
        future.set_result(True)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self.shutdown_called = True

    @property
    def recipients(self) -> list[str]:
        return [email.recipient for email in self.sent]


class RecordingRealtimePublisher:
    def __init__(self) -> None:
        self.dispatched = []

    def dispatch(self, notification) -> bool:
        self.dispatched.append(notification)
        return True


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    initialize_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture()
def session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        frontend_base_url="https://app.example.com",
        email_team_signature="The Test Team",
    )


@pytest.fixture()
def email_dispatcher() -> RecordingEmailDispatcher:
    return RecordingEmailDispatcher()


@pytest.fixture()
def realtime_publisher() -> RecordingRealtimePublisher:
    return RecordingRealtimePublisher()


@pytest.fixture()
def make_user(session):
    def _make_user(user_id: int, *, username: str | None = None, email: str | None = "default"):
        address = f"user{user_id}@example.com" if email == "default" else email
        return UserRepository(session).create(
            User(id=user_id, username=username or f"user{user_id}", email=address)
        )

    return _make_user


@pytest.fixture()
def make_task(session):
    def _make_task(
        *,
        title: str = "Write report",
        owner_id: int = 100,
        project_id: int | None = 1,
        assignee_ids=(),
        status: str = "TODO",
        due_at=None,
    ) -> Task:
        return TaskRepository(session).create(
            Task(
                id=None,
                project_id=project_id,
                owner_id=owner_id,
                title=title,
                status=status,
                assignee_ids=list(assignee_ids),
                due_at=due_at,
            )
        )

    return _make_task
