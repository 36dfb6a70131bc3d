"""Unit tests for sliding window rate limiting"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import pytest

from citizen_portal.domain.rate_limiting import (
    InMemoryRateLimitBackend,
    RateLimitBackend,
    RateLimitBackendError,
    RateLimiter,
    RateLimitResult,
)


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubBackend(RateLimitBackend):
    """Durable backend returning canned results or failing"""

    name = "stub"

    def __init__(self, results: Optional[List[RateLimitResult]] = None, error: Optional[Exception] = None):
        self.results = list(results or [])
        self.error = error
        self.calls: List[str] = []

    async def hit(self, key: str) -> RateLimitResult:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        return self.results.pop(0)


class TestInMemoryBackend:
    """Test the process-local bucket map"""

    def test_admits_max_then_rejects(self):
        """N=3: allowed, allowed, allowed, rejected"""
        backend = InMemoryRateLimitBackend(max_requests=3, window_seconds=60, clock=FakeClock())

        outcomes = [backend.check("submit:1.2.3.4").allowed for _ in range(4)]

        assert outcomes == [True, True, True, False]

    def test_resets_after_window(self):
        clock = FakeClock()
        backend = InMemoryRateLimitBackend(max_requests=3, window_seconds=60, clock=clock)
        for _ in range(4):
            backend.check("k")

        clock.advance(60)

        assert backend.check("k").allowed is True

    def test_still_blocked_just_before_window_end(self):
        clock = FakeClock()
        backend = InMemoryRateLimitBackend(max_requests=1, window_seconds=60, clock=clock)
        backend.check("k")

        clock.advance(59.9)

        assert backend.check("k").allowed is False

    def test_remaining_counts_down(self):
        backend = InMemoryRateLimitBackend(max_requests=3, window_seconds=60, clock=FakeClock())
        assert [backend.check("k").remaining for _ in range(4)] == [2, 1, 0, 0]

    def test_keys_are_independent(self):
        backend = InMemoryRateLimitBackend(max_requests=1, window_seconds=60, clock=FakeClock())
        assert backend.check("a").allowed is True
        assert backend.check("b").allowed is True
        assert backend.check("a").allowed is False
        assert len(backend) == 2

    def test_reset_clears_buckets(self):
        backend = InMemoryRateLimitBackend(max_requests=1, window_seconds=60, clock=FakeClock())
        backend.check("a")
        backend.reset()
        assert len(backend) == 0
        assert backend.check("a").allowed is True

    def test_concurrent_checks_admit_exactly_max(self):
        backend = InMemoryRateLimitBackend(max_requests=10, window_seconds=60, clock=FakeClock())
        workers = 16
        barrier = threading.Barrier(workers)

        def burst() -> int:
            barrier.wait()
            return sum(backend.check("k").allowed for _ in range(50))

        with ThreadPoolExecutor(max_workers=workers) as pool:
            admitted = sum(pool.map(lambda _: burst(), range(workers)))

        assert admitted == 10
        assert backend.check("k").allowed is False


class TestRateLimiter:
    """Test durable/fallback orchestration"""

    def test_rejects_invalid_limits(self):
        with pytest.raises(ValueError):
            RateLimiter(max_requests=0, window_seconds=60)
        with pytest.raises(ValueError):
            RateLimiter(max_requests=10, window_seconds=0)

    @pytest.mark.asyncio
    async def test_uses_in_process_buckets_without_durable_backend(self):
        limiter = RateLimiter(
            max_requests=3,
            window_seconds=60,
            fallback=InMemoryRateLimitBackend(3, 60, clock=FakeClock()),
        )

        outcomes = [(await limiter.allow("k")).allowed for _ in range(4)]

        assert outcomes == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_durable_result_is_authoritative(self):
        durable = StubBackend(results=[RateLimitResult(allowed=False, remaining=0)])
        fallback = InMemoryRateLimitBackend(3, 60, clock=FakeClock())
        limiter = RateLimiter(max_requests=3, window_seconds=60, durable=durable, fallback=fallback)

        result = await limiter.allow("submit:1.2.3.4")

        assert result.allowed is False
        assert durable.calls == ["submit:1.2.3.4"]
        assert len(fallback) == 0

    @pytest.mark.asyncio
    async def test_falls_back_when_durable_backend_fails(self):
        """A backend outage never fails the request"""
        durable = StubBackend(error=RateLimitBackendError("connection refused"))
        fallback = InMemoryRateLimitBackend(2, 60, clock=FakeClock())
        limiter = RateLimiter(max_requests=2, window_seconds=60, durable=durable, fallback=fallback)

        outcomes = [(await limiter.allow("k")).allowed for _ in range(3)]

        assert outcomes == [True, True, False]
        assert len(durable.calls) == 3

    @pytest.mark.asyncio
    async def test_bypass_admits_everything(self):
        durable = StubBackend(error=AssertionError("must not be called"))
        limiter = RateLimiter(max_requests=1, window_seconds=60, durable=durable, bypass=True)

        for _ in range(5):
            assert (await limiter.allow("k")).allowed is True
        assert durable.calls == []
