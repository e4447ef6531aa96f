"""Utility script to delete old read notifications."""

from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import cleanup_old_notifications
from app.config import get_settings
from app.infrastructure.database import SessionLocal, initialize_database
from app.logging_config import configure_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments for the cleanup run."""

    parser = argparse.ArgumentParser(
        description="Delete read notifications older than the retention window.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=get_settings().notification_retention_days,
        help="Number of days of read notifications to keep (default: NOTIFICATION_RETENTION_DAYS)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level for this run",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the cleanup and print how many notifications were removed."""

    args = parse_args(argv)
    if args.days < 0:
        raise SystemExit("--days must not be negative")

    configure_logging(args.log_level)
    initialize_database()

    session = SessionLocal()
    try:
        deleted = cleanup_old_notifications(session, args.days)
    except SQLAlchemyError as exc:
        session.rollback()
        raise SystemExit(f"Could not clean up notifications: {exc}") from exc
    finally:
        session.close()

    print(f"Deleted {deleted} read notification(s) older than {args.days} day(s)")
    return deleted


if __name__ == "__main__":
    main()
