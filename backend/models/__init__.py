"""Models package - settings, domain errors, API schemas and notification types."""

from .notification_types import NotificationConfig, NotificationType

__all__ = [
    "NotificationConfig",
    "NotificationType",
]
