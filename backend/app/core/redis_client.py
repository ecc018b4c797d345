"""
Redis client initialization and connection management.

Redis coordinates the periodic offer sweeper across worker processes.
"""

import redis.asyncio as redis
from backend.app.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def acquire_lock(client, key: str, ttl_ms: int) -> bool:
    """
    Try to take a short-lived lock.

    Returns True when the lock was taken, False when another holder has it.
    Connection errors propagate to the caller.
    """
    acquired = await client.set(key, "1", nx=True, px=ttl_ms)
    return bool(acquired)
