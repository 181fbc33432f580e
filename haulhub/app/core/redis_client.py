"""
Redis client initialization and connection management.

Redis holds the token revocation flags for suspended accounts. It is
optional for the rest of the API: /health reports it as down instead of
failing.
"""

import logging
import redis.asyncio as redis
from haulhub.app.core.config import settings

logger = logging.getLogger(__name__)


def build_redis_client(url: str) -> redis.Redis:
    return redis.from_url(
        url,
        decode_responses=settings.redis_decode_responses,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )


# Create async Redis client
redis_client = build_redis_client(settings.redis_url)


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return bool(await redis_client.ping())
    except (redis.RedisError, OSError) as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis() -> None:
    """Close the pooled connections at shutdown."""
    await redis_client.aclose()
