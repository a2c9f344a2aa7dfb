"""
Redis caching service for route queries.

CACHING STRATEGY
================

What we cache:
  - The serialized result of GET /trains?source=..&destination=..
  - Key pattern: "trains:route:<json [source, destination]>"

Invalidation:
  - After every committed booking (available_seats changed)
  - After every train creation (a route may have gained a train)
  - TTL-based expiry as a safety net (REDIS_CACHE_TTL)

  All route keys share the "trains:route:" prefix, so invalidation is a
  SCAN over that prefix.

Consistency:
  The cache only ever serves reads. The booking engine never consults it:
  seat allocation goes straight to the database's conditional UPDATE, so a
  stale cached count can mislead a reader for at most one TTL but can never
  cause an oversell.

Redis failures are logged and swallowed. The service keeps working off the
database when Redis is down or disabled.
"""

import json
from typing import Optional

import redis.asyncio as redis

from railbook.core.config import get_settings
from railbook.core.logging import get_logger
from railbook.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

ROUTE_KEY_PREFIX = "trains:route:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected")

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_route_key(source: str, destination: str) -> str:
    # JSON keeps arbitrary station names from colliding on the separator
    return ROUTE_KEY_PREFIX + json.dumps([source, destination])


async def get_cached_route(source: str, destination: str) -> Optional[list]:
    """Return the cached train list for a route, or None on miss."""
    client = await get_redis()
    if not client:
        return None

    key = _make_route_key(source, destination)
    try:
        data = await client.get(key)
    except redis.RedisError as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", error=str(e))
        return None

    record_cache_operation("get", "hit" if data is not None else "miss")
    if data is None:
        return None
    return json.loads(data)


async def set_cached_route(source: str, destination: str, trains: list) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_route_key(source, destination)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(trains, default=str))
        logger.debug("cache_set", ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", error=str(e))
        return

    record_cache_operation("set", "ok")


async def invalidate_route_cache() -> None:
    """Drop every cached route listing."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=ROUTE_KEY_PREFIX + "*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except redis.RedisError as e:
        logger.error("cache_stats_error", error=str(e))
        return {"status": "error"}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
