"""Public submission endpoint

POST /api/submit and POST /{locale}/api/submit accept a citizen submission
as JSON or multipart/form-data. Rejections are raised as IntakeError and
rendered into the error envelope by the application's exception handler.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..config import get_settings
from ..dependencies import get_intake_service
from .parsing import resolve_locale
from .schemas import SubmitResponse
from .service import SubmissionIntakeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"])

_ERROR_RESPONSES = {
    400: {"model": SubmitResponse, "description": "BAD_REQUEST, SPAM, CAPTCHA_* or FILE_VALIDATION_ERROR"},
    404: {"description": "Unsupported locale segment"},
    422: {"model": SubmitResponse, "description": "VALIDATION"},
    429: {"model": SubmitResponse, "description": "RATE_LIMIT"},
    500: {"model": SubmitResponse, "description": "FILE_STORAGE_ERROR or DB_ERROR"},
}


async def _accept(request: Request, service: SubmissionIntakeService, locale: Optional[str]) -> SubmitResponse:
    settings = get_settings()
    resolved = resolve_locale(locale, settings.locales, settings.DEFAULT_LOCALE)
    if resolved is None:
        # Same answer as any other unrouted path
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    submission = await service.submit(request, locale=resolved)
    logger.info(f"Accepted submission: id={submission.id}, locale={resolved}")
    return SubmitResponse(ok=True)


@router.post(
    "/api/submit",
    response_model=SubmitResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def submit(
    request: Request,
    service: Annotated[SubmissionIntakeService, Depends(get_intake_service)],
):
    """Accept a citizen submission.

    Fields: name, phone (or contact), email, district, seatName, shareName,
    message, an optional ``attachment`` file part (multipart only) and a
    captcha token when captcha is enabled.

    Example:
        curl -X POST https://portal.example.gov.bd/api/submit \\
             -F "phone=01712345678" \\
             -F "message=The road near the school is flooded again" \\
             -F "attachment=@photo.jpg"
    """
    return await _accept(request, service, locale=None)


@router.post(
    "/{locale}/api/submit",
    response_model=SubmitResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
async def submit_localized(
    locale: str,
    request: Request,
    service: Annotated[SubmissionIntakeService, Depends(get_intake_service)],
):
    """Accept a citizen submission from a localized page (bn, en).

    The locale segment is stored as given; unsupported locales are 404.
    """
    return await _accept(request, service, locale=locale)
