"""Observability: structured logging, request correlation, metrics, health."""

from .logging_config import configure_logging, get_logger
from .request_id import REQUEST_ID_HEADER, get_request_id, set_request_id, generate_request_id
from .events import log_submission_event

__all__ = [
    "configure_logging",
    "get_logger",
    "REQUEST_ID_HEADER",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "log_submission_event",
]
