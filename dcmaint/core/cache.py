"""
Redis Client Module

One Redis client per process. dcmaint keeps no data in Redis: it only
carries the change events behind the live file and corrective report lists,
relayed between API instances and the orphan-sweep worker.
"""

import redis.asyncio as redis

from dcmaint.config import get_settings

# Module-level cache for the Redis client
_redis_client: redis.Redis | None = None


async def get_redis() -> redis.Redis:
    """
    Get the shared Redis client instance.

    Creates a new connection on first call, reuses for subsequent calls.
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()
        _redis_client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection. Called on application shutdown."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
