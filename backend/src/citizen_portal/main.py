"""Citizen Portal Backend - Main FastAPI Application

Public submission intake for the citizen portal.

This module creates and configures the FastAPI application, including:
- Submission and attachment routers
- Middleware (request ID correlation, CORS)
- Exception handlers rendering the {"ok": false, "error": {...}} envelope
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import get_settings
from .domain.attachments import FileValidator
from .domain.identity import build_identity_hasher
from .domain.rate_limiting import RateLimiter
from .infrastructure.redis import RedisRateLimitBackend, create_redis_client
from .infrastructure.sniffing import FiletypeSniffer
from .infrastructure.storage import build_file_storage
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .security import CaptchaVerifier
from .submissions.errors import IntakeError
from .submissions.router import router as submissions_router
from .uploads.router import router as uploads_router

settings = get_settings()

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: build the process-wide pipeline components on ``app.state``
    - Shutdown: close the Redis connection pool
    """
    settings = get_settings()
    logger.info("Citizen portal API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    redis_client = create_redis_client(settings.REDIS_URL, settings.REDIS_SOCKET_TIMEOUT)
    durable = None
    if redis_client is not None:
        durable = RedisRateLimitBackend(
            redis_client,
            max_requests=settings.RATE_LIMIT_MAX,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )

    app.state.redis_client = redis_client
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.RATE_LIMIT_MAX,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        durable=durable,
        bypass=settings.rate_limit_bypassed,
    )
    app.state.identity_hasher = build_identity_hasher(settings.HASH_SALT, settings.is_production)
    app.state.file_validator = FileValidator(settings.max_upload_bytes, FiletypeSniffer())
    app.state.file_storage = build_file_storage(settings)
    app.state.captcha_verifier = CaptchaVerifier(
        site_key=settings.RECAPTCHA_SITE_KEY,
        secret_key=settings.RECAPTCHA_SECRET_KEY,
        verify_url=settings.RECAPTCHA_VERIFY_URL,
        timeout=settings.RECAPTCHA_TIMEOUT_SECONDS,
        production=settings.is_production,
    )

    yield

    logger.info("Citizen portal API shutting down...")
    if redis_client is not None:
        await redis_client.aclose()


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

async def intake_exception_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Render a rejected submission into the error envelope."""
    if exc.status_code >= 500:
        logger.error(f"Submission failed: code={exc.code}")
    else:
        logger.info(f"Submission rejected: code={exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_envelope(),
        headers=exc.headers,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors raised by FastAPI itself."""
    issues = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body",
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.info(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "ok": False,
            "error": {"code": "VALIDATION", "message": "Validation failed", "issues": issues},
        },
    )


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "ok": False,
            "error": {"code": "DB_ERROR", "message": "A database error occurred. Please try again later."},
        },
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged but not exposed to the client.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "ok": False,
            "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred. Please try again later."},
        },
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app() -> FastAPI:
    """Build a configured FastAPI application instance."""
    settings = get_settings()
    docs_enabled = not settings.is_production

    app = FastAPI(
        title="Citizen Portal API",
        description="Public submission intake for the citizen portal",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    # Request ID Middleware (must be first for proper correlation)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    app.add_exception_handler(IntakeError, intake_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(observability_router)
    app.include_router(submissions_router)
    app.include_router(uploads_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        """Root endpoint - API information."""
        return {
            "name": "Citizen Portal API",
            "version": __version__,
            "status": "running",
            "docs": "/docs" if docs_enabled else None,
        }

    return app


app = create_app()


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        "citizen_portal.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
