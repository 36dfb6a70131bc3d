"""Structured JSON logging configuration.

Provides centralized logging setup with request ID correlation and JSON formatting.
Caller network addresses are never written to the log stream: any record
field named in REDACTED_FIELDS is replaced before formatting.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from .request_id import get_request_id

# Record attributes that must never reach the log output verbatim
REDACTED_FIELDS = ("ip", "client_ip", "remote_addr", "x_forwarded_for")
REDACTED = "[REDACTED]"

# Extra attributes copied into the JSON payload when present on a record
_EXTRA_FIELDS = (
    "event",
    "meta",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "error_type",
)


class RequestIDFilter(logging.Filter):
    """Add request_id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add request_id attribute to log record.

        Args:
            record: Log record to enhance

        Returns:
            bool: Always True (don't filter out records)
        """
        record.request_id = get_request_id()
        return True


class RedactionFilter(logging.Filter):
    """Blank out address-like attributes attached via ``extra``."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in REDACTED_FIELDS:
            if hasattr(record, field):
                setattr(record, field, REDACTED)
        meta = getattr(record, "meta", None)
        if isinstance(meta, dict):
            record.meta = redact_mapping(meta)
        return True


def redact_mapping(data: dict) -> dict:
    """Return a copy of ``data`` with address-like keys redacted."""
    return {
        key: (REDACTED if key in REDACTED_FIELDS else value)
        for key, value in data.items()
    }


class JSONFormatter(logging.Formatter):
    """Format log records as JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string.

        Args:
            record: Log record to format

        Returns:
            str: JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", "no-request-id"),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["error"] = str(record.exc_info[1])
            log_data["traceback"] = self.formatException(record.exc_info)

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, use JSON formatter; otherwise use simple format
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(request_id)s - %(module)s.%(funcName)s - %(message)s'
        )

    handler.setFormatter(formatter)
    handler.addFilter(RequestIDFilter())
    handler.addFilter(RedactionFilter())

    root_logger.addHandler(handler)

    # Suppress noisy third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with request ID filtering.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(name)
