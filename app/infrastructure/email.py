"""SendGrid email delivery and the background dispatcher used by notifications."""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.config import get_settings

logger = logging.getLogger(__name__)

EmailSender = Callable[..., bool]


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages = [
                _format_sendgrid_error(item) for item in errors if isinstance(item, dict)
            ]
            messages = [message for message in messages if message]
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _format_sendgrid_error(item: dict[str, Any]) -> str | None:
    message = item.get("message")
    help_link = item.get("help")
    if message and help_link:
        return f"{message} (help: {help_link})"
    if message:
        return str(message)
    return None


def _log_sendgrid_failure(source: Any, recipient: str) -> None:
    """Log a failed SendGrid call (exception or response) with its details."""

    status_code = getattr(source, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(source, "body", None))

    if status_code and details:
        logger.error(
            "SendGrid request for %s failed with status %s: %s",
            recipient,
            status_code,
            details,
        )
    elif status_code:
        logger.error("SendGrid request for %s failed with status %s", recipient, status_code)
    elif details:
        logger.error("SendGrid request for %s failed: %s", recipient, details)
    else:
        logger.error("Error sending email to %s via SendGrid: %s", recipient, source)


def send_email(
    subject: str,
    html_content: str,
    recipient: str,
    plain_text_content: str | None = None,
) -> bool:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email to %s", recipient)
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
        plain_text_content=plain_text_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        _log_sendgrid_failure(exc, recipient)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(response, recipient)
        return False

    logger.info("Email sent to %s: subject=%r", recipient, subject)
    return True


class EmailDispatcher:
    """Submit emails to a thread pool so callers never wait on delivery.

    ``dispatch`` returns a :class:`~concurrent.futures.Future` resolving to the
    sender's boolean result. Exceptions raised by the sender are stored in the
    future and logged; they never reach the caller.
    """

    def __init__(
        self,
        *,
        max_workers: int | None = None,
        sender: EmailSender = send_email,
    ) -> None:
        workers = max_workers or get_settings().email_max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="email_dispatch"
        )
        self._sender = sender

    def dispatch(
        self,
        recipient: str,
        subject: str,
        html_content: str,
        plain_text_content: str | None = None,
    ) -> Future[bool]:
        try:
            future = self._executor.submit(
                self._sender, subject, html_content, recipient, plain_text_content
            )
        except RuntimeError as exc:
            logger.error("Email dispatcher unavailable, dropping email to %s: %s", recipient, exc)
            future = Future()
            future.set_exception(exc)
            return future

        future.add_done_callback(lambda done: self._log_outcome(done, recipient))
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_outcome(future: Future[bool], recipient: str) -> None:
        if future.cancelled():
            logger.warning("Email to %s was cancelled before delivery", recipient)
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to send email to %s: %s", recipient, exc, exc_info=exc)
        elif future.result() is False:
            logger.warning("Email to %s was not delivered", recipient)


__all__ = ["EmailDispatcher", "EmailSender", "send_email"]
