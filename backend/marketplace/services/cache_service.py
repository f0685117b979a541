"""
Redis read-through cache for catalogue responses.

What we cache:
  - Listings of events on sale, with per-ticket-type availability
      key: "events:list:page={page}&size={size}"
  - Venue detail pages (venue, room types, rooms in service)
      key: "venues:detail:{venue_id}"

What we never cache:
  - Availability checks, bookings and purchase paths. They read live counts
    inside their own transaction; a stale count is an overbooking.

Invalidation:
  - A ticket purchase drops every "events:list:*" key (SCAN + DELETE)
  - TTL (REDIS_CACHE_TTL) bounds staleness for everything else

Redis is advisory. When it is disabled or unreachable every call degrades
to a miss and the caller reads the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from marketplace.core.config import get_settings
from marketplace.core.logging import get_logger
from marketplace.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"
VENUE_DETAIL_PREFIX = "venues:detail:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await client.ping()
            _redis_client = client
            logger.info("redis_connected", url=settings.REDIS_URL)
        except (redis.RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            return None

    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def event_list_key(page: int, page_size: int) -> str:
    return f"{EVENT_LIST_PREFIX}page={page}&size={page_size}"


def venue_detail_key(venue_id: int) -> str:
    return f"{VENUE_DETAIL_PREFIX}{venue_id}"


async def cache_get(key: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def cache_set(key: str, data: dict, ttl: Optional[int] = None) -> None:
    client = await get_redis()
    if not client:
        return

    ttl = ttl or settings.REDIS_CACHE_TTL
    try:
        await client.setex(key, ttl, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=ttl)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_prefix(prefix: str) -> int:
    client = await get_redis()
    if not client:
        return 0

    deleted = 0
    try:
        async for key in client.scan_iter(match=f"{prefix}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", prefix=prefix, keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", prefix=prefix, error=str(e))
    return deleted


async def invalidate_event_listings() -> int:
    return await invalidate_prefix(EVENT_LIST_PREFIX)


async def get_cache_stats() -> dict:
    """Redis cache statistics for /health."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
