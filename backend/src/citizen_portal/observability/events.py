"""Submission event sink.

Every notable step of the intake pipeline is emitted as a single
``submission_event`` log record carrying an event name and a metadata dict.
"""

import logging
from typing import Any, Mapping, Optional

from .logging_config import get_logger, redact_mapping

logger = get_logger("citizen_portal.submissions.events")


def log_submission_event(
    event: str,
    meta: Optional[Mapping[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """Emit a submission event.

    Args:
        event: Dotted event name, e.g. ``submission.created``
        meta: Event metadata; address-like keys are redacted
        level: Log level for the record
    """
    payload = redact_mapping(dict(meta or {}))
    logger.log(level, "submission_event", extra={"event": event, "meta": payload})
