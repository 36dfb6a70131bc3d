"""Redis sliding-window rate limit backend.

Each key is a sorted set of request timestamps (milliseconds). A hit trims
entries older than the window, adds the current request, counts and refreshes
the key TTL in one MULTI/EXEC pipeline, so the count is consistent across all
API instances sharing the Redis server.
"""

import time
from typing import Callable
from uuid import uuid4

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...domain.rate_limiting import RateLimitBackend, RateLimitBackendError, RateLimitResult


class RedisRateLimitBackend(RateLimitBackend):
    """Sorted-set sliding window counter in Redis."""

    name = "redis"

    def __init__(
        self,
        client: Redis,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.max_requests = max_requests
        self.window_ms = window_seconds * 1000
        self.key_prefix = key_prefix
        self._clock = clock

    def _redis_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    async def hit(self, key: str) -> RateLimitResult:
        redis_key = self._redis_key(key)
        now_ms = int(self._clock() * 1000)
        member = f"{now_ms}-{uuid4().hex}"

        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.zremrangebyscore(redis_key, 0, now_ms - self.window_ms)
            pipe.zadd(redis_key, {member: now_ms})
            pipe.zcard(redis_key)
            pipe.pexpire(redis_key, self.window_ms)
            _, _, count, _ = await pipe.execute()

            if count > self.max_requests:
                # Rejected requests do not occupy a slot in the window
                await self.client.zrem(redis_key, member)
                return RateLimitResult(allowed=False, remaining=0)
        except (RedisError, OSError) as e:
            raise RateLimitBackendError(f"Redis rate limit check failed: {e}") from e

        return RateLimitResult(allowed=True, remaining=max(0, self.max_requests - count))
