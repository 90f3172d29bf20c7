"""External API client implementations."""

from .notification_client import HttpNotificationClient

__all__ = [
    "HttpNotificationClient",
]
