"""Submission intake pipeline.

Stages run strictly in order and the first failing stage decides the
response:

    rate check -> parse -> honeypot -> captcha -> attachment validation
    -> field validation -> spam scoring -> attachment storage -> persistence

There is exactly one storage attempt and one persistence attempt, storage
first. A persistence failure after a successful store leaves the stored
file in place; the error event records its key.
"""

import logging
from typing import Optional

from fastapi import Request
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from ..domain.attachments import FileValidationError, FileValidator, ValidatedFile
from ..domain.attachments.ports import FileStoragePort, StorageError, StoredFileInfo
from ..domain.identity import IdentityHasher
from ..domain.rate_limiting import RateLimiter
from ..domain.spam import assess_spam
from ..infrastructure.repositories import SubmissionRepository
from ..models.submission import Submission, SubmissionStatus
from ..observability import log_submission_event
from ..observability.metrics import (
    attachment_bytes_histogram,
    attachment_rejections_total,
    spam_score_histogram,
    submissions_flagged_total,
    submissions_total,
)
from ..security import CaptchaVerifier
from .errors import (
    AttachmentStorageError,
    AttachmentValidationError,
    CaptchaFailedError,
    CaptchaRequiredError,
    FieldValidationError,
    IntakeError,
    PersistenceError,
    RateLimitedError,
    SpamRejectedError,
)
from .parsing import ANONYMOUS_ADDRESS, ParsedSubmission, client_address, parse_submission_request
from .schemas import SubmissionPayload, issues_from_validation_error

logger = logging.getLogger(__name__)

RATE_LIMIT_KEY_PREFIX = "submit"


class SubmissionIntakeService:
    """Runs one submission through every intake stage.

    Collaborators are process-wide singletons except the repository, which
    wraps the request's database session.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        validator: FileValidator,
        storage: FileStoragePort,
        hasher: IdentityHasher,
        captcha: CaptchaVerifier,
        repository: SubmissionRepository,
        spam_threshold: float = 0.5,
    ):
        self.rate_limiter = rate_limiter
        self.validator = validator
        self.storage = storage
        self.hasher = hasher
        self.captcha = captcha
        self.repository = repository
        self.spam_threshold = spam_threshold

    async def submit(self, request: Request, locale: str) -> Submission:
        """Accept or reject one submission.

        Args:
            request: Incoming request; its body is consumed
            locale: Resolved locale stored with the record

        Returns:
            Submission: The persisted record

        Raises:
            IntakeError: Subclass matching the first failing stage
        """
        try:
            submission = await self._run(request, locale)
        except IntakeError as e:
            submissions_total.labels(code=e.code).inc()
            raise

        submissions_total.labels(code="OK").inc()
        return submission

    async def _run(self, request: Request, locale: str) -> Submission:
        address = client_address(request)
        await self._check_rate_limit(address)

        parsed = await parse_submission_request(request)
        if parsed.honeypot_tripped:
            log_submission_event("submission.spam_rejected", {"reason": "honeypot", "source": parsed.source})
            raise SpamRejectedError()

        await self._check_captcha(parsed, address)

        validated = await self._validate_attachment(parsed)

        try:
            payload = SubmissionPayload.model_validate(parsed.fields)
        except ValidationError as e:
            issues = issues_from_validation_error(e)
            logger.info(f"Submission failed field validation: fields={[i['field'] for i in issues]}")
            raise FieldValidationError(issues)

        spam = assess_spam(payload.message)
        flagged = spam.is_flagged(self.spam_threshold)

        stored = await self._store_attachment(validated) if validated is not None else None

        try:
            submission = await run_in_threadpool(
                self.repository.create,
                name=payload.name if payload.share_name else None,
                contact=payload.contact,
                email=payload.email,
                district=payload.district,
                seat_name=payload.seat_name,
                message=payload.message,
                ip_digest=self.hasher.digest(address),
                locale=locale,
                status=SubmissionStatus.FLAGGED if flagged else SubmissionStatus.PENDING,
                attachment=stored,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist submission: {type(e).__name__}", exc_info=True)
            log_submission_event(
                "submission.error",
                {
                    "stage": "persistence",
                    "error": type(e).__name__,
                    "orphan_attachment_key": stored.key if stored else None,
                },
                level=logging.ERROR,
            )
            raise PersistenceError()

        spam_score_histogram.observe(spam.score)
        if flagged:
            submissions_flagged_total.inc()

        log_submission_event(
            "submission.created",
            {
                "id": str(submission.id),
                "locale": submission.locale,
                "status": submission.status.value,
                "spamScore": spam.score,
                "spamReasons": spam.reasons,
                "hasFile": stored is not None,
                "fileInfo": _file_info(stored),
            },
        )
        return submission

    async def _check_rate_limit(self, address: str) -> None:
        result = await self.rate_limiter.allow(f"{RATE_LIMIT_KEY_PREFIX}:{address}")
        if not result.allowed:
            log_submission_event("submission.rate_limited", {"window_seconds": self.rate_limiter.window_seconds})
            raise RateLimitedError(retry_after=self.rate_limiter.window_seconds)

    async def _check_captcha(self, parsed: ParsedSubmission, address: str) -> None:
        if not self.captcha.is_configured:
            return

        if not parsed.captcha_token:
            raise CaptchaRequiredError()

        result = await self.captcha.verify(
            parsed.captcha_token,
            remote_ip=None if address == ANONYMOUS_ADDRESS else address,
        )
        if not result.success:
            log_submission_event(
                "submission.captcha_failed",
                {"errorCodes": result.error_codes, "message": result.message},
            )
            raise CaptchaFailedError()

    async def _validate_attachment(self, parsed: ParsedSubmission) -> Optional[ValidatedFile]:
        if parsed.attachment is None:
            return None
        try:
            return await run_in_threadpool(self.validator.validate, parsed.attachment)
        except FileValidationError as e:
            attachment_rejections_total.inc()
            logger.info(f"Attachment rejected: reason={e.reason}")
            raise AttachmentValidationError(e.message)

    async def _store_attachment(self, validated: ValidatedFile) -> StoredFileInfo:
        try:
            stored = await self.storage.store(validated)
        except StorageError as e:
            logger.error(f"Attachment storage failed on {self.storage.name} backend: {e}", exc_info=True)
            log_submission_event(
                "submission.error",
                {"stage": "storage", "backend": self.storage.name, "error": str(e)},
                level=logging.ERROR,
            )
            raise AttachmentStorageError()

        attachment_bytes_histogram.observe(stored.size)
        log_submission_event(
            "submission.file_stored",
            {
                "fileName": stored.original_name,
                "fileSize": stored.size,
                "mimeType": stored.mime_type,
                "storageKey": stored.key,
            },
        )
        return stored


def _file_info(stored: Optional[StoredFileInfo]) -> Optional[dict]:
    if stored is None:
        return None
    return {
        "name": stored.original_name,
        "size": stored.size,
        "type": stored.mime_type,
        "url": stored.url,
        "key": stored.key,
    }
