"""FastAPI dependencies for the submission pipeline.

Process-wide components are built once in the application lifespan and kept
on ``app.state``; these accessors hand them to request handlers. Tests
replace any of them through ``app.dependency_overrides``.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import Settings, get_settings
from .database import get_db
from .domain.attachments import FileValidator
from .domain.attachments.ports import FileStoragePort
from .domain.identity import IdentityHasher
from .domain.rate_limiting import RateLimiter
from .infrastructure.repositories import SubmissionRepository
from .security import CaptchaVerifier
from .submissions.service import SubmissionIntakeService


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_file_validator(request: Request) -> FileValidator:
    return request.app.state.file_validator


def get_file_storage(request: Request) -> FileStoragePort:
    return request.app.state.file_storage


def get_identity_hasher(request: Request) -> IdentityHasher:
    return request.app.state.identity_hasher


def get_captcha_verifier(request: Request) -> CaptchaVerifier:
    return request.app.state.captcha_verifier


def get_intake_service(
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    validator: FileValidator = Depends(get_file_validator),
    storage: FileStoragePort = Depends(get_file_storage),
    hasher: IdentityHasher = Depends(get_identity_hasher),
    captcha: CaptchaVerifier = Depends(get_captcha_verifier),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SubmissionIntakeService:
    """Assemble the intake service for one request.

    Example:
        @router.post("/api/submit")
        async def submit(request: Request, service: SubmissionIntakeService = Depends(get_intake_service)):
            await service.submit(request, locale="bn")
    """
    return SubmissionIntakeService(
        rate_limiter=rate_limiter,
        validator=validator,
        storage=storage,
        hasher=hasher,
        captcha=captcha,
        repository=SubmissionRepository(db),
        spam_threshold=settings.SPAM_THRESHOLD,
    )
