"""Shared Redis connection for the live score fan-out.

Redis carries no state the engine depends on: balances, dedup keys and team
aggregates live in PostgreSQL. Losing Redis only pauses live score updates.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis  # noqa: PLW0603
    if _redis is None:
        _redis = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        )
    return _redis


async def check_redis() -> bool:
    """Ping at startup. Unreachable Redis is logged, not fatal."""
    try:
        await (await get_redis()).ping()
    except RedisError as exc:
        logger.warning("Redis unreachable, live score updates paused: %s", exc)
        return False
    return True


async def close_redis() -> None:
    global _redis  # noqa: PLW0603
    if _redis is not None:
        await _redis.aclose()
        _redis = None
