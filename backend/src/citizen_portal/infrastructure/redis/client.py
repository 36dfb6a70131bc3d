"""Redis client factory.

The client is created lazily by redis-py; no connection is opened until the
first command, so an unreachable server never blocks application startup.
"""

import logging
from typing import Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def create_redis_client(url: Optional[str], socket_timeout: float = 0.5) -> Optional[Redis]:
    """Create an asyncio Redis client from a URL.

    Args:
        url: Redis connection string (``redis://`` or ``rediss://``); None disables Redis
        socket_timeout: Connect and command timeout in seconds

    Returns:
        Redis client, or None if no URL is configured
    """
    if not url:
        return None

    client = Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        retry_on_timeout=False,
    )
    logger.info("Configured Redis client for shared rate limiting")
    return client
