"""
Redis client wrapper.

Responsibilities:
  • Slug locks — short-lived lock keyed by slug-lock:{base_slug}, held while a
                 post's slug is looked up and the document written, so two
                 creates with the same title queue instead of racing.

Redis is optional: with slug_lock_enabled=False the allocator relies solely on
the unique slug index in MongoDB and retries on collision.
"""
import logging
from typing import Optional

import redis.asyncio as aioredis

from content_platform.config import settings

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None

SLUG_LOCK_KEY = "slug-lock:{base}"


async def init_redis() -> None:
    global _redis
    if not settings.slug_lock_enabled:
        logger.info("Slug locking disabled: Redis not connected")
        return
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    await _redis.ping()
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)


async def stop_redis() -> None:
    if _redis is not None:
        await _redis.aclose()


def get_redis() -> Optional[aioredis.Redis]:
    """Return the shared client, or None when slug locking is disabled."""
    return _redis


def slug_lock(redis: aioredis.Redis, base: str):
    """Distributed lock for one base slug (async context manager)."""
    return redis.lock(
        SLUG_LOCK_KEY.format(base=base),
        timeout=settings.slug_lock_timeout,
        blocking_timeout=settings.slug_lock_timeout,
    )
