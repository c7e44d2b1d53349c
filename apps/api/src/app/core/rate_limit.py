"""
Rate Limiting Module

Per-principal rate limiting for API endpoints using Redis as the backend.
Falls back to in-memory storage if Redis is unavailable.

Attendance writes (create/update/delete) are limited per teacher so a
misbehaving client cannot flood the store or the consensus resolver.
"""

import logging
import time

from fastapi import Depends, HTTPException, status

from app.core.auth import CurrentUser, get_current_teacher
from app.core.config import settings
from app.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Uses a sliding window algorithm with Redis sorted sets.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    # Remove old entries outside the window
    pipe.zremrangebyscore(key, 0, window_start)
    # Count current requests in window
    pipe.zcard(key)
    # Add current request
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using in-memory storage.

    Fallback when Redis is unavailable. Note: This doesn't work
    across multiple server instances.
    """
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries the shared Redis client first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit (e.g., "attendance_write:<teacher_id>")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    redis_client = await get_redis()

    if redis_client is not None:
        try:
            return await _check_rate_limit_redis(redis_client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def limit_attendance_writes(
    teacher: CurrentUser = Depends(get_current_teacher),
) -> CurrentUser:
    """
    FastAPI dependency: authenticate the teacher and enforce the write limit.

    Usage:
        @router.post("")
        async def create(teacher: CurrentUser = Depends(limit_attendance_writes)):
            ...

    Raises:
        RateLimitExceeded: When the teacher exceeds the configured limit (HTTP 429)
    """
    limit = settings.attendance_rate_limit
    window_seconds = settings.attendance_rate_limit_window_seconds
    key = f"rate_limit:attendance_write:{teacher.id}"

    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Rate limit exceeded for teacher {teacher.id}: {limit}/{window_seconds}s")
        raise RateLimitExceeded(limit, window_seconds)

    return teacher


def reset_memory_store() -> None:
    """Clear the in-memory fallback store."""
    _memory_store.clear()


__all__ = [
    "check_rate_limit",
    "limit_attendance_writes",
    "reset_memory_store",
    "RateLimitExceeded",
]
