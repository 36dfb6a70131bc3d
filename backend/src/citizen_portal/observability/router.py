"""Operational endpoints: Prometheus scrape target and health check."""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..database import get_db
from .health import (
    HealthStatus,
    check_database_health,
    check_redis_health,
    get_overall_health,
)
from .logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Database and Redis rate-limit store status",
)
async def health_check(request: Request, db: Session = Depends(get_db)):
    """Report component health.

    Returns 200 while the database answers, even if Redis is down (the
    limiter falls back per process); 503 otherwise.
    """
    components = {
        "database": await run_in_threadpool(check_database_health, db),
        "redis": await check_redis_health(getattr(request.app.state, "redis_client", None)),
    }
    overall = get_overall_health(components)

    if overall == HealthStatus.UNHEALTHY:
        logger.warning("Health check failed", extra={"status_code": status.HTTP_503_SERVICE_UNAVAILABLE})
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_200_OK

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall.value,
            "components": {
                name: {
                    "status": component.status.value,
                    "message": component.message,
                    "latency_ms": component.latency_ms,
                }
                for name, component in components.items()
            },
        },
    )
