"""Errors raised by the notification store and the collaboration use cases."""


class NotificationNotFoundError(LookupError):
    """Raised when a notification identifier does not exist."""

    def __init__(self, notification_id: int) -> None:
        super().__init__(f"Notification not found with ID: {notification_id}")
        self.notification_id = notification_id


class NotificationAccessDeniedError(PermissionError):
    """Raised when a user tries to read or modify someone else's notification."""

    def __init__(self, notification_id: int, requester_id: int) -> None:
        super().__init__(
            f"User {requester_id} is not authorized to access notification {notification_id}"
        )
        self.notification_id = notification_id
        self.requester_id = requester_id


__all__ = ["NotificationAccessDeniedError", "NotificationNotFoundError"]
