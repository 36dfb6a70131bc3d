"""Sliding window rate limiting for public submission endpoints.

A RateLimiter admits at most ``max_requests`` calls per key within
``window_seconds``. It consults a durable backend (Redis) when one is
configured so the limit holds across API instances, and falls back to a
process-local bucket map when there is none or when the durable backend
errors. Rate limiting is defense in depth: a backend outage never fails
the request.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ...observability.metrics import rate_limit_fallbacks_total, rate_limit_rejections_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single admission check."""
    allowed: bool
    remaining: int


class RateLimitBackendError(Exception):
    """Raised by a durable backend when it cannot answer."""
    pass


class RateLimitBackend(ABC):
    """Port interface for rate limit counters.

    ``hit`` records one request for ``key`` and reports whether it is
    admitted. Implementations raise RateLimitBackendError on infrastructure
    failure and nothing else.
    """

    name = "backend"

    @abstractmethod
    async def hit(self, key: str) -> RateLimitResult:
        pass


@dataclass
class _Bucket:
    count: int
    expires_at: float


class InMemoryRateLimitBackend(RateLimitBackend):
    """Process-local bucket map guarded by a single lock.

    Buckets are never evicted; they are reset once expired. Keys are bounded
    by the number of distinct callers, which keeps the map small.
    """

    name = "memory"

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    async def hit(self, key: str) -> RateLimitResult:
        return self.check(key)

    def check(self, key: str) -> RateLimitResult:
        """Synchronous increment-or-create for ``key``."""
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or bucket.expires_at <= now:
                self._buckets[key] = _Bucket(count=1, expires_at=now + self.window_seconds)
                return RateLimitResult(allowed=True, remaining=self.max_requests - 1)

            if bucket.count >= self.max_requests:
                return RateLimitResult(allowed=False, remaining=0)

            bucket.count += 1
            return RateLimitResult(allowed=True, remaining=self.max_requests - bucket.count)

    def reset(self) -> None:
        """Drop all buckets."""
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


class RateLimiter:
    """Admission control with a durable backend and in-process fallback.

    Constructed once per process and handed to request handlers through
    dependency injection.

    Example:
        limiter = RateLimiter(max_requests=10, window_seconds=60,
                              durable=RedisRateLimitBackend(client, 10, 60))
        result = await limiter.allow("submit:203.0.113.7")
        if not result.allowed:
            ...
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: int = 60,
        durable: Optional[RateLimitBackend] = None,
        fallback: Optional[InMemoryRateLimitBackend] = None,
        bypass: bool = False,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.durable = durable
        self.fallback = fallback or InMemoryRateLimitBackend(max_requests, window_seconds)
        self.bypass = bypass

        if bypass:
            logger.warning(
                "RATE LIMITING IS DISABLED (non-production bypass). "
                "Every request will be admitted."
            )
        elif durable is None:
            logger.info(
                f"Rate limiter using in-process buckets: max={max_requests}, "
                f"window={window_seconds}s"
            )
        else:
            logger.info(
                f"Rate limiter using {durable.name} backend: max={max_requests}, "
                f"window={window_seconds}s"
            )

    async def allow(self, key: str) -> RateLimitResult:
        """Record a request for ``key`` and decide whether to admit it.

        Args:
            key: Limiter key, e.g. ``submit:<caller address>``

        Returns:
            RateLimitResult: allowed flag and remaining requests in the window
        """
        if self.bypass:
            return RateLimitResult(allowed=True, remaining=self.max_requests)

        backend: RateLimitBackend = self.fallback
        result: Optional[RateLimitResult] = None

        if self.durable is not None:
            try:
                result = await self.durable.hit(key)
                backend = self.durable
            except RateLimitBackendError as e:
                rate_limit_fallbacks_total.inc()
                logger.warning(f"Durable rate limit backend unavailable, using in-process fallback: {e}")

        if result is None:
            result = await self.fallback.hit(key)

        if not result.allowed:
            rate_limit_rejections_total.labels(backend=backend.name).inc()

        return result
