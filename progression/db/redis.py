"""Redis connection management.

Mirrors engine.py: when REDIS_URL is configured a shared connection
pool is created at import time; when it is None every consumer falls
back to its in-memory implementation and no Redis server is needed.

The engine only uses Redis for the leaderboard read-through cache.
Durable state (ledger, XP, streaks, grants) always lives in Postgres.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from progression.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=20,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Startup/shutdown hook for Redis, mirrors lifespan_db().

    A failed ping on startup is logged and the app still starts; the
    health endpoint reports redis as degraded until it recovers.
    """
    if redis_pool is None:
        logger.info("No REDIS_URL configured, cache uses in-memory store")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except (RedisError, OSError):
        logger.exception("Redis connection failed on startup")

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
