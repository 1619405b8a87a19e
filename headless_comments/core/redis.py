# ruff: noqa: PLW0603
"""Redis connection management.

Redis backs the runtime options store and carries comment notification
events over Pub/Sub.
"""

import redis.asyncio as redis

from headless_comments.config import get_settings
from headless_comments.core.logging import get_logger


logger = get_logger(__name__)

# Global Redis client
_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize Redis connection pool and check connectivity."""
    global _redis_client

    settings = get_settings()

    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    _redis_client = client
    logger.info("redis_connected", url=settings.redis_url)
    return _redis_client


async def shutdown_redis() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


# Pub/Sub channels for comment notifications
def author_notification_channel() -> str:
    """Channel for "new approved comment on your post" events."""
    return "comments:notify:author"


def moderator_notification_channel() -> str:
    """Channel for "comment awaiting moderation" events."""
    return "comments:notify:moderator"
