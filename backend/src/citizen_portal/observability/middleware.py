"""Request correlation middleware.

Binds a request ID for the duration of each request and writes one access
record when it finishes. Access records carry method, path, status and
duration only; the caller's address is never logged.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import REQUEST_ID_HEADER, accept_request_id, reset_request_id, set_request_id

logger = get_logger("citizen_portal.access")

# Polled by infrastructure; logging them would drown the access log
QUIET_PATHS = frozenset({"/health", "/metrics"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach ``X-Request-ID`` to every response and log request outcomes."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} raised {type(e).__name__}",
                extra={
                    "method": request.method,
                    "path": path,
                    "error_type": type(e).__name__,
                    "duration_ms": _elapsed_ms(started),
                },
                exc_info=True,
            )
            reset_request_id(token)
            raise

        if path not in QUIET_PATHS:
            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                f"{request.method} {path} -> {response.status_code}",
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": _elapsed_ms(started),
                },
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        reset_request_id(token)
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
