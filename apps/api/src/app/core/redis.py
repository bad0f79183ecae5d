"""
Redis Connection

Shared async Redis client used by the endpoint rate limiter and, when
VERIFICATION_BACKEND=redis, by the verification store.
"""

from redis.asyncio import Redis, from_url

from app.core.config import settings

# Set during application startup, None when Redis is unavailable
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Connect to Redis and verify the connection with a PING.

    Call this on application startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return redis_client


async def close_redis() -> None:
    """Close the shared client."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
