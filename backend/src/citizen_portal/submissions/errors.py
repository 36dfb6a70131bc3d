"""Intake error hierarchy.

Each error carries the public response code, HTTP status and a message that
is safe to show to the submitter. A single exception handler renders them
into the ``{"ok": false, "error": {...}}`` envelope.
"""

from typing import Dict, List, Optional


class IntakeError(Exception):
    """Base class for every rejected submission."""

    code = "INTAKE_ERROR"
    status_code = 400
    default_message = "Submission rejected"

    def __init__(
        self,
        message: Optional[str] = None,
        issues: Optional[List[Dict[str, str]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.issues = issues
        self.headers = headers
        super().__init__(self.message)

    def to_envelope(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.issues is not None:
            error["issues"] = self.issues
        return {"ok": False, "error": error}


class RateLimitedError(IntakeError):
    code = "RATE_LIMIT"
    status_code = 429
    default_message = "Too many requests"

    def __init__(self, retry_after: int):
        super().__init__(headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class BadRequestError(IntakeError):
    code = "BAD_REQUEST"
    default_message = "Invalid request format"


class SpamRejectedError(IntakeError):
    code = "SPAM"
    default_message = "Rejected"


class CaptchaRequiredError(IntakeError):
    code = "CAPTCHA_REQUIRED"
    default_message = "Captcha verification is required."


class CaptchaFailedError(IntakeError):
    code = "CAPTCHA_FAILED"
    default_message = "Captcha verification failed. Please try again."


class AttachmentValidationError(IntakeError):
    code = "FILE_VALIDATION_ERROR"
    default_message = "Invalid file"


class AttachmentStorageError(IntakeError):
    code = "FILE_STORAGE_ERROR"
    status_code = 500
    default_message = "Failed to store file. Please try again."


class FieldValidationError(IntakeError):
    code = "VALIDATION"
    status_code = 422
    default_message = "Validation failed"

    def __init__(self, issues: List[Dict[str, str]]):
        super().__init__(issues=issues)


class PersistenceError(IntakeError):
    code = "DB_ERROR"
    status_code = 500
    default_message = "Could not store submission"
