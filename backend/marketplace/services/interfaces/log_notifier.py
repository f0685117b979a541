"""
Logging notification sink - the default when no message bus is configured.
"""

from marketplace.core.logging import get_logger
from marketplace.services.interfaces.notifier import NotificationSink

logger = get_logger("marketplace.notifications")


class LoggingNotificationSink(NotificationSink):
    """Write notifications to the structured log; also keeps the last few in
    memory so they can be inspected in development and tests."""

    def __init__(self, keep: int = 100):
        self.keep = keep
        self.sent: list[tuple[str, dict]] = []

    async def notify(self, event: str, payload: dict) -> None:
        logger.info("notification", notification=event, **payload)
        self.sent.append((event, payload))
        del self.sent[:-self.keep]
