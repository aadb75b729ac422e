"""Shared Redis client for the bid rate limiter.

Balances, holds and auction state never touch Redis. The limiter fails open,
so the client uses short socket timeouts: a slow Redis must not stall a bid.
"""

import logging

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Return the process-wide client, creating it on first use."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
        )
        logger.info("Redis client created (timeout %.1fs)", settings.REDIS_TIMEOUT_SECONDS)
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is None:
        return
    client, _client = _client, None
    await client.aclose()
