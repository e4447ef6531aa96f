"""Utility helpers for reusable functionality."""

from .datetime import (
    days_ago,
    ensure_app_timezone,
    get_app_timezone,
    minutes_ago,
    now_in_app_timezone,
    now_utc_naive,
    to_utc_naive,
)

__all__ = [
    "days_ago",
    "ensure_app_timezone",
    "get_app_timezone",
    "minutes_ago",
    "now_in_app_timezone",
    "now_utc_naive",
    "to_utc_naive",
]
