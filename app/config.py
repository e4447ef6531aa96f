"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone name (or UTC±HH:MM offset) used for timestamps",
    )
    frontend_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the web client, prefixed to notification links in emails",
    )
    email_team_signature: str = Field(
        default="The Taskboard Team",
        description="Signature appended to every notification email",
    )
    email_max_workers: int = Field(
        default=4,
        description="Number of threads used to deliver emails in the background",
        gt=0,
    )
    broker_workers_per_queue: int = Field(
        default=1,
        description="Worker threads consuming each notification queue",
        gt=0,
    )
    broker_max_retries: int = Field(
        default=3,
        description="Delivery attempts before an event is dead-lettered",
        ge=0,
    )
    notification_retention_days: int = Field(
        default=30,
        description="Read notifications older than this many days are removed by cleanup",
        gt=0,
    )
    deadline_reminder_hours: int = Field(
        default=24,
        description="Assignees are reminded once when a task falls due within this many hours",
        gt=0,
    )
    overdue_reminder_interval_hours: int = Field(
        default=24,
        description="Minimum hours between two overdue reminders for the same task and assignee",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Root log level")

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
