"""Notification service package."""

from .backend import (
    DatabaseNotificationBackend,
    InAppNotice,
    InMemoryNotificationBackend,
    NotificationBackend,
)
from .service import NotificationEvent, NotificationService

__all__ = [
    "DatabaseNotificationBackend",
    "InAppNotice",
    "InMemoryNotificationBackend",
    "NotificationBackend",
    "NotificationEvent",
    "NotificationService",
]
