"""Rate limiting domain module - sliding-window admission control"""

from .rate_limiter import (
    RateLimitResult,
    RateLimitBackend,
    RateLimitBackendError,
    InMemoryRateLimitBackend,
    RateLimiter,
)

__all__ = [
    "RateLimitResult",
    "RateLimitBackend",
    "RateLimitBackendError",
    "InMemoryRateLimitBackend",
    "RateLimiter",
]
