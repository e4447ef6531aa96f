"""Utility script to remind assignees about due and overdue tasks.

Meant to be run periodically (for example from cron).
"""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import NotificationDelivery, check_task_deadlines
from app.config import get_settings
from app.infrastructure.database import SessionLocal, initialize_database
from app.infrastructure.email import EmailDispatcher
from app.logging_config import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the deadline check."""

    parser = argparse.ArgumentParser(
        description="Create reminders for tasks due soon and for overdue tasks.",
    )
    parser.add_argument(
        "--lead-hours",
        type=int,
        default=get_settings().deadline_reminder_hours,
        help="Remind assignees of tasks due within this many hours (default: DEADLINE_REMINDER_HOURS)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level for this run",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one deadline check and print how many reminders were created."""

    args = parse_args(argv)
    if args.lead_hours <= 0:
        raise SystemExit("--lead-hours must be positive")

    configure_logging(args.log_level)
    initialize_database()

    settings = get_settings().model_copy(update={"deadline_reminder_hours": args.lead_hours})
    email_dispatcher = EmailDispatcher()
    delivery = NotificationDelivery(
        email_dispatcher=email_dispatcher,
        realtime_publisher=None,
        settings=settings,
    )

    session = SessionLocal()
    try:
        result = check_task_deadlines(session, delivery, settings=settings)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not check task deadlines: {exc}") from exc
    finally:
        session.close()
        email_dispatcher.shutdown(wait=True)

    print(
        f"Created {len(result.pre_due)} pre-due and {len(result.overdue)} overdue "
        f"reminder(s); {result.skipped} already reminded"
    )
    return result.total


if __name__ == "__main__":
    main()
