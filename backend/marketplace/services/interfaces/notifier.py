"""
Notification sink interface.
Booking and ticket services announce state changes here; delivery (email,
push, message bus) belongs to whoever listens.
"""

from abc import ABC, abstractmethod


class NotificationSink(ABC):
    """
    Interface for notification sinks.

    Implementations:
    - LoggingNotificationSink: writes each notification to the structured log
    - RedisNotificationSink: publishes JSON messages on a Redis channel
    """

    @abstractmethod
    async def notify(self, event: str, payload: dict) -> None:
        """
        Deliver one notification.

        Args:
            event: Snake-case event name, e.g. "booking_created"
            payload: JSON-serializable details

        Sinks must not raise for delivery failures: the state change the
        notification describes has already been committed.
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the sink."""
        pass
