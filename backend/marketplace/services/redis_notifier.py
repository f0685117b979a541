"""
Redis pub/sub notification sink.

Each notification is published as JSON on NOTIFICATION_CHANNEL:
    {"event": "booking_created", "payload": {...}}

Delivery is fire-and-forget. If Redis is unavailable the notification is
written to the log instead; the booking or purchase it describes is already
committed and must not be undone by a messaging outage.
"""

import json

import redis.asyncio as redis

from marketplace.core.config import get_settings
from marketplace.core.logging import get_logger
from marketplace.services.cache_service import get_redis
from marketplace.services.interfaces.notifier import NotificationSink

logger = get_logger(__name__)
settings = get_settings()


class RedisNotificationSink(NotificationSink):

    def __init__(self, channel: str = None):
        self.channel = channel or settings.NOTIFICATION_CHANNEL

    async def notify(self, event: str, payload: dict) -> None:
        message = json.dumps({"event": event, "payload": payload}, default=str)
        client = await get_redis()
        if client is None:
            logger.warning("notification_undelivered", notification=event, reason="redis_unavailable", **payload)
            return

        try:
            receivers = await client.publish(self.channel, message)
            logger.debug("notification_published", notification=event, receivers=receivers)
        except redis.RedisError as e:
            logger.error("notification_publish_failed", notification=event, error=str(e))
