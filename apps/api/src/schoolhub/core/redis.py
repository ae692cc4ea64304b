"""
Redis Connection

Shared async client. Redis only backs the request rate limiter, so the API
keeps working without it (the limiter then counts in process memory).
"""

import logging

from redis.asyncio import Redis, from_url

from schoolhub.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect on startup.

    The client is only published after a successful PING, so a failed
    connection leaves ``redis_client`` unset.
    """
    global redis_client
    client = from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    await client.ping()

    redis_client = client
    logger.info("Redis connection established")
    return client


async def get_redis() -> Redis | None:
    """Current client, or None when Redis was never reached."""
    return redis_client


async def close_redis() -> None:
    """Close the client on shutdown."""
    global redis_client
    if redis_client is None:
        return

    await redis_client.aclose()
    redis_client = None
    logger.info("Redis connection closed")
