"""Render notification emails."""

from __future__ import annotations

from html import escape

from app.config import Settings
from app.domain.entities import Notification


def _absolute_link(notification: Notification, settings: Settings) -> str | None:
    link = notification.link
    if not link:
        return None
    if link.startswith(("http://", "https://")):
        return link
    return f"{settings.frontend_base_url.rstrip('/')}{link}"


def render_plain_text(notification: Notification, settings: Settings) -> str:
    parts = ["Hello,\n\n", f"{notification.message}\n\n"]
    link = _absolute_link(notification, settings)
    if link:
        parts.append(f"Click here to view: {link}\n\n")
    parts.append(f"Best regards,\n{settings.email_team_signature}")
    return "".join(parts)


def render_html(notification: Notification, settings: Settings) -> str:
    parts = [
        "<p>Hello,</p>",
        f"<p><strong>{escape(notification.subject)}</strong></p>",
        f"<p>{escape(notification.message)}</p>",
    ]
    link = _absolute_link(notification, settings)
    if link:
        parts.append(
            f'<p><a href="{escape(link, quote=True)}" style="display:inline-block;padding:10px 18px;'
            "background-color:#2563eb;color:#ffffff;text-decoration:none;"
            'border-radius:4px;">View Details</a></p>'
        )
    parts.append(f"<p>Best regards,<br>{escape(settings.email_team_signature)}</p>")
    return "".join(parts)


__all__ = ["render_html", "render_plain_text"]
