"""
Shared Redis connection.

Redis only backs the per-IP rate limit of the public booking routes. Calendar
occupancy never lives here: the database is the single source of truth for
reserved intervals.

Key patterns:
    rate_limit:public:{client_ip}:{window_index}   fixed-window request counter
"""

import logging
from functools import lru_cache

import redis.asyncio as redis

from shared.config import get_settings

logger = logging.getLogger(__name__)

MAX_CONNECTIONS = 20
HEALTH_CHECK_INTERVAL_SECONDS = 30


@lru_cache
def get_redis_client() -> "redis.Redis[str]":
    """
    Process-wide Redis client (pooled, retries on timeout).

    ``from_url`` does not connect; connection errors surface on the first
    command and are handled by the caller.
    """
    settings = get_settings()
    client = redis.from_url(
        settings.REDIS_URL,
        max_connections=MAX_CONNECTIONS,
        decode_responses=True,
        retry_on_timeout=True,
        health_check_interval=HEALTH_CHECK_INTERVAL_SECONDS,
    )
    logger.info(f"Redis client ready for {settings.REDIS_URL} (pool={MAX_CONNECTIONS})")
    return client


async def close_redis_client() -> None:
    """Close the pooled client, if one was created, and forget it."""
    if get_redis_client.cache_info().currsize == 0:
        return
    await get_redis_client().aclose()
    get_redis_client.cache_clear()
