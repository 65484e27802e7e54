"""Redis client factory — backs the market store (single shared key).

Responses are decoded to str because the store document is JSON text. Socket
timeouts are bounded so an unreachable Redis surfaces as StoreUnavailableError
instead of a hung request.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.pm_common.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    return _redis_pool


async def ping_redis(redis: aioredis.Redis) -> None:
    """Fail fast at startup when the store is unreachable."""
    try:
        await redis.ping()
    except RedisError as exc:
        logger.error("Redis unreachable at %s: %s", settings.REDIS_URL, exc)
        raise StoreUnavailableError(str(exc)) from exc


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
