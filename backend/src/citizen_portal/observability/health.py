"""Health checks for the database and the shared rate-limit store.

The database is required: without it no submission can be accepted. Redis
is optional; when it is missing or down the limiter runs per process, so
the service is degraded rather than unhealthy.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def _since(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def check_database_health(db: Session) -> ComponentHealth:
    """Run ``SELECT 1`` on the request's session."""
    started = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, "Database unavailable")
    return ComponentHealth(HealthStatus.HEALTHY, "Database connection OK", _since(started))


async def check_redis_health(client: Optional[Redis]) -> ComponentHealth:
    """Ping the shared rate-limit store.

    Args:
        client: Shared Redis client, or None when REDIS_URL is unset
    """
    if client is None:
        return ComponentHealth(HealthStatus.HEALTHY, "Not configured (in-process rate limiting)")

    started = time.perf_counter()
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {e}")
        return ComponentHealth(HealthStatus.DEGRADED, "Redis unavailable (in-process rate limiting)")
    return ComponentHealth(HealthStatus.HEALTHY, "Redis connection OK", _since(started))


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst component status wins."""
    statuses = {c.status for c in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
