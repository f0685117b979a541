"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .notifier import NotificationSink
from .log_notifier import LoggingNotificationSink

__all__ = ['NotificationSink', 'LoggingNotificationSink']
