"""Logging setup shared by the API process and the maintenance scripts."""

from __future__ import annotations

import logging

from app.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "app-console"


def configure_logging(level: str | None = None) -> None:
    """Install a single console handler on the root logger.

    Calling it again only updates the level, so the lifespan hook and the CLI
    scripts can both call it without duplicating output.
    """

    resolved = (level or get_settings().log_level or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(resolved)

    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


__all__ = ["configure_logging", "LOG_FORMAT"]
