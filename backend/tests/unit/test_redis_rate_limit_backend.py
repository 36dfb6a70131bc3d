"""Unit tests for the Redis sliding window backend (Redis mocked)"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from citizen_portal.domain.rate_limiting import RateLimitBackendError
from citizen_portal.infrastructure.redis import RedisRateLimitBackend

NOW = 1_700_000_000.0


def make_client(count: int = 1, error: Exception = None):
    """Mock redis.asyncio client whose pipeline reports ``count`` entries"""
    pipe = MagicMock()
    if error is not None:
        pipe.execute = AsyncMock(side_effect=error)
    else:
        pipe.execute = AsyncMock(return_value=[0, 1, count, True])

    client = MagicMock()
    client.pipeline.return_value = pipe
    client.zrem = AsyncMock(return_value=1)
    return client, pipe


class TestRedisRateLimitBackend:

    @pytest.mark.asyncio
    async def test_admits_within_limit(self):
        client, pipe = make_client(count=2)
        backend = RedisRateLimitBackend(client, max_requests=3, window_seconds=60, clock=lambda: NOW)

        result = await backend.hit("submit:1.2.3.4")

        assert result.allowed is True
        assert result.remaining == 1
        client.pipeline.assert_called_once_with(transaction=True)
        client.zrem.assert_not_called()

    @pytest.mark.asyncio
    async def test_pipeline_trims_window_and_sets_ttl(self):
        client, pipe = make_client(count=1)
        backend = RedisRateLimitBackend(client, max_requests=3, window_seconds=60, clock=lambda: NOW)

        await backend.hit("submit:1.2.3.4")

        now_ms = int(NOW * 1000)
        pipe.zremrangebyscore.assert_called_once_with("ratelimit:submit:1.2.3.4", 0, now_ms - 60_000)
        pipe.zcard.assert_called_once_with("ratelimit:submit:1.2.3.4")
        pipe.pexpire.assert_called_once_with("ratelimit:submit:1.2.3.4", 60_000)
        key, mapping = pipe.zadd.call_args.args
        assert key == "ratelimit:submit:1.2.3.4"
        assert list(mapping.values()) == [now_ms]

    @pytest.mark.asyncio
    async def test_rejects_over_limit_and_releases_slot(self):
        client, pipe = make_client(count=4)
        backend = RedisRateLimitBackend(client, max_requests=3, window_seconds=60, clock=lambda: NOW)

        result = await backend.hit("k")

        assert result.allowed is False
        assert result.remaining == 0
        member = next(iter(pipe.zadd.call_args.args[1]))
        client.zrem.assert_awaited_once_with("ratelimit:k", member)

    @pytest.mark.asyncio
    async def test_redis_errors_become_backend_errors(self):
        client, _ = make_client(error=RedisConnectionError("connection refused"))
        backend = RedisRateLimitBackend(client, max_requests=3, window_seconds=60)

        with pytest.raises(RateLimitBackendError):
            await backend.hit("k")

    @pytest.mark.asyncio
    async def test_socket_errors_become_backend_errors(self):
        client, _ = make_client(error=OSError("network unreachable"))
        backend = RedisRateLimitBackend(client, max_requests=3, window_seconds=60)

        with pytest.raises(RateLimitBackendError):
            await backend.hit("k")
