from .notification import (
    NotificationBulkUpdateResult,
    NotificationMarkReadRequest,
    NotificationPageRead,
    NotificationRead,
    UnreadCountRead,
)

__all__ = [
    "NotificationBulkUpdateResult",
    "NotificationMarkReadRequest",
    "NotificationPageRead",
    "NotificationRead",
    "UnreadCountRead",
]
