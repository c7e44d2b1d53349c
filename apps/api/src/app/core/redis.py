"""
Redis Connection

The shared Redis client holds the sliding-window counters for the attendance
write rate limit, so the limit holds across API workers. Redis is optional:
``get_redis`` returns None only when Redis never connected at startup. If
Redis goes down later, the client is still returned and its commands fail;
the rate limiter catches those errors and falls back to per-process memory.
"""

import logging

from redis.asyncio import Redis, from_url

from app.core.config import settings

logger = logging.getLogger(__name__)

_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to Redis and verify the connection.

    Call this on application startup.

    Raises:
        redis.exceptions.ConnectionError: If Redis cannot be reached
    """
    global _client
    _client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=settings.redis_connect_timeout_seconds,
    )
    await _client.ping()
    return _client


async def get_redis() -> Redis | None:
    """Return the shared client, or None if Redis was never connected."""
    return _client


async def ping_redis() -> str:
    """
    Connection state for health endpoints.

    Returns:
        "connected", "not initialized" or "error: <reason>"
    """
    if _client is None:
        return "not initialized"
    try:
        await _client.ping()
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        return f"error: {e}"
    return "connected"


async def close_redis() -> None:
    """Close the connection. Safe to call when Redis never connected."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
