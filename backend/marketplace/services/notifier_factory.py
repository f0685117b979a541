"""
Notification sink factory.
Configures which sink booking and ticket services publish to.
"""

from typing import Optional

from marketplace.core.config import get_settings
from marketplace.services.interfaces.notifier import NotificationSink
from marketplace.services.interfaces.log_notifier import LoggingNotificationSink
from marketplace.services.redis_notifier import RedisNotificationSink


def build_notifier() -> NotificationSink:
    """
    Sink selection via NOTIFICATION_BACKEND:
    - "log" (default): LoggingNotificationSink
    - "redis": RedisNotificationSink on NOTIFICATION_CHANNEL
    """
    backend = get_settings().NOTIFICATION_BACKEND.lower()

    if backend == "redis":
        return RedisNotificationSink()
    return LoggingNotificationSink()


# Singleton instance
_notifier: Optional[NotificationSink] = None


def get_notifier() -> NotificationSink:
    global _notifier
    if _notifier is None:
        _notifier = build_notifier()
    return _notifier


def set_notifier(notifier: Optional[NotificationSink]) -> None:
    """Replace the process-wide sink (None resets to the configured one)."""
    global _notifier
    _notifier = notifier
