"""
Rate Limiting Module

Fixed-window request limiting keyed by client IP, applied to every route
under the API prefix. Uses Redis as the counter store and falls back to
in-memory storage if Redis is unavailable.

Each window is a counter created on the first request and expiring after
``rate_limit_window_seconds``; once it passes ``rate_limit_max_requests``
further requests get a 429 until the window resets.
"""

import logging
import time

from fastapi import Request
from redis.asyncio import Redis

from schoolhub.core.config import settings
from schoolhub.core.errors import RateLimitExceededError
from schoolhub.core.redis import get_redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate_limit:ip"

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: (window_expires_at, count)}
_memory_store: dict[str, tuple[float, int]] = {}
_next_sweep_at = 0.0


async def _hit_redis(client: Redis, key: str, window_seconds: int) -> tuple[int, int]:
    """
    Count a request using Redis.

    Returns:
        Tuple of (requests in the current window, seconds until reset)
    """
    count = await client.incr(key)
    if count == 1:
        await client.expire(key, window_seconds)
        return count, window_seconds

    ttl = await client.ttl(key)
    if ttl < 0:
        # Counter lost its expiry; start a new window
        await client.expire(key, window_seconds)
        ttl = window_seconds
    return count, ttl


def _hit_memory(key: str, window_seconds: int) -> tuple[int, int]:
    """
    Count a request using in-memory storage.

    Fallback when Redis is unavailable. Note: This doesn't work
    across multiple server instances.
    """
    global _next_sweep_at
    now = time.time()

    # Drop closed windows at most once per window length
    if now >= _next_sweep_at:
        for stale in [k for k, (expires, _) in _memory_store.items() if expires <= now]:
            del _memory_store[stale]
        _next_sweep_at = now + window_seconds

    expires_at, count = _memory_store.get(key, (0.0, 0))

    if expires_at <= now:
        expires_at, count = now + window_seconds, 0

    count += 1
    _memory_store[key] = (expires_at, count)
    return count, max(1, int(expires_at - now))


def reset_memory_store() -> None:
    """Drop all in-memory counters."""
    global _next_sweep_at
    _memory_store.clear()
    _next_sweep_at = 0.0


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
    """
    Record a request and check it against the limit.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Counter key (e.g., "rate_limit:ip:10.0.0.1")
        limit: Maximum requests allowed in the window
        window_seconds: Window length in seconds

    Returns:
        Tuple of (allowed, seconds until the window resets)
    """
    client = await get_redis()

    if client is not None:
        try:
            count, retry_after = await _hit_redis(client, key, window_seconds)
            return count <= limit, retry_after
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    count, retry_after = _hit_memory(key, window_seconds)
    return count <= limit, retry_after


def client_ip(request: Request) -> str:
    """
    Peer address of the connection.

    Forwarding headers are client-controlled and ignored; behind a proxy run
    uvicorn with --proxy-headers so the peer address is the real client.
    """
    return request.client.host if request.client else "unknown"


async def enforce_ip_rate_limit(request: Request) -> None:
    """
    FastAPI dependency applying the per-IP window to a router.

    Usage:
        api_router = APIRouter(dependencies=[Depends(enforce_ip_rate_limit)])

    Raises:
        RateLimitExceededError: When the client exceeded its window (HTTP 429)
    """
    if not settings.rate_limit_enabled or settings.is_test:
        return

    key = f"{KEY_PREFIX}:{client_ip(request)}"
    allowed, retry_after = await check_rate_limit(
        key,
        settings.rate_limit_max_requests,
        settings.rate_limit_window_seconds,
    )

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for {key}: "
            f"{settings.rate_limit_max_requests}/{settings.rate_limit_window_seconds}s"
        )
        raise RateLimitExceededError(retry_after)


__all__ = [
    "check_rate_limit",
    "client_ip",
    "enforce_ip_rate_limit",
    "reset_memory_store",
]
