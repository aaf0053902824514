"""
Redis connection for the revoked-token store.

The client is module-level and looked up at call time, so tests can swap it.
"""

import logging

import redis.asyncio as redis
from cogniflow.app.core.config import settings

logger = logging.getLogger(__name__)

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    return redis_client


async def ping_redis() -> bool:
    """True when Redis answers; used by /health."""
    try:
        return bool(await redis_client.ping())
    except Exception as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    await redis_client.aclose()
