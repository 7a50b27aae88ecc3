"""Redis connection management.

Mirrors engine.py: with REDIS_URL set the portal shares one connection pool
for the progress-summary cache and the notification queue; without it both
fall back to in-memory implementations.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from portal.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


async def check_redis() -> bool:
    if redis_pool is None:
        return False
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except (RedisError, OSError):
        logger.warning("Redis health check failed", exc_info=True)
        return False
    return True


@asynccontextmanager
async def lifespan_redis():
    """Verify the pool on startup and close it on shutdown.

    An unreachable Redis is logged but does not stop the API: the cache
    misses and notification enqueue failures are already swallowed.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, cache and queue are in-memory")
        yield
        return

    if await check_redis():
        logger.info("Redis connected: %s", SETTINGS.redis_url)
    else:
        logger.error("Redis unreachable on startup: %s", SETTINGS.redis_url)

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
