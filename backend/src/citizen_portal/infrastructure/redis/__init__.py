"""Redis adapters"""

from .client import create_redis_client
from .rate_limit_backend import RedisRateLimitBackend

__all__ = ["create_redis_client", "RedisRateLimitBackend"]
