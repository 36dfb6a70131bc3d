"""Request parsing for submission intake.

The body is read exactly once and normalised into a ParsedSubmission,
whichever encoding the client used. Empty or whitespace-only strings become
None here so later stages never see them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from fastapi import Request
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from ..domain.attachments import IncomingAttachment
from .errors import BadRequestError

logger = logging.getLogger(__name__)

HONEYPOT_FIELDS = ("website", "honeypot", "hp_field")
CAPTCHA_TOKEN_FIELDS = ("captchaToken", "h-captcha-response", "g-recaptcha-response")
ATTACHMENT_FIELD = "attachment"
SHARE_NAME_TRUE_VALUES = (True, "true", "on", "1")

ANONYMOUS_ADDRESS = "anonymous"


@dataclass
class ParsedSubmission:
    """A submission body after decoding, before validation.

    Attributes:
        source: "json" or "multipart"
        fields: Candidate schema fields (None values omitted)
        attachment: Uploaded file part, multipart only
        captcha_token: First non-empty captcha token field
        honeypot_tripped: A hidden honeypot field carried a value
    """
    source: str
    fields: Dict[str, Any] = field(default_factory=dict)
    attachment: Optional[IncomingAttachment] = None
    captcha_token: Optional[str] = None
    honeypot_tripped: bool = False


def clean_value(value: Any) -> Any:
    """Strip strings and collapse empty ones to None; other values pass through."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _first(values: Dict[str, Any], names: Iterable[str]) -> Any:
    for name in names:
        value = clean_value(values.get(name))
        if value is not None:
            return value
    return None


def _build_parsed(source: str, values: Dict[str, Any], attachment: Optional[IncomingAttachment]) -> ParsedSubmission:
    share_name = clean_value(values.get("shareName"))
    if isinstance(share_name, str):
        share_name = share_name.lower()

    candidate = {
        "name": clean_value(values.get("name")),
        "contact": _first(values, ("phone", "contact")),
        "email": clean_value(values.get("email")),
        "district": clean_value(values.get("district")),
        "seatName": clean_value(values.get("seatName")),
        "shareName": share_name in SHARE_NAME_TRUE_VALUES,
        "message": clean_value(values.get("message")),
    }
    token = _first(values, CAPTCHA_TOKEN_FIELDS)

    return ParsedSubmission(
        source=source,
        fields={key: value for key, value in candidate.items() if value is not None},
        attachment=attachment,
        captcha_token=token if isinstance(token, str) else None,
        honeypot_tripped=any(clean_value(values.get(name)) for name in HONEYPOT_FIELDS),
    )


async def _parse_multipart(request: Request) -> ParsedSubmission:
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException, ValueError) as e:
        logger.info(f"Rejected malformed multipart body: {e}")
        raise BadRequestError()

    values: Dict[str, Any] = {}
    attachment: Optional[IncomingAttachment] = None

    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key == ATTACHMENT_FIELD and attachment is None and _has_content(value):
                attachment = IncomingAttachment(
                    filename=value.filename or "",
                    declared_type=value.content_type,
                    stream=value.file,
                    size=value.size,
                )
            continue
        values.setdefault(key, value)

    return _build_parsed("multipart", values, attachment)


def _has_content(upload: UploadFile) -> bool:
    # Browsers send an empty, unnamed part when no file was chosen
    return bool(upload.filename) or bool(upload.size)


async def _parse_json(request: Request) -> ParsedSubmission:
    try:
        payload = await request.json()
    except ValueError as e:
        logger.info(f"Rejected malformed JSON body: {e}")
        raise BadRequestError()

    if not isinstance(payload, dict):
        raise BadRequestError()

    return _build_parsed("json", payload, None)


async def parse_submission_request(request: Request) -> ParsedSubmission:
    """Decode a submission body.

    Raises:
        BadRequestError: Unparseable body or unsupported content type
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith("multipart/form-data"):
        return await _parse_multipart(request)
    if not content_type or "json" in content_type:
        return await _parse_json(request)

    logger.info(f"Rejected unsupported content type: {content_type}")
    raise BadRequestError()


def client_address(request: Request) -> str:
    """Caller address from proxy headers, the socket peer, or a placeholder."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return ANONYMOUS_ADDRESS


def resolve_locale(locale: Optional[str], supported: Iterable[str], default: str) -> Optional[str]:
    """Locale recorded for a submission.

    The path segment is kept verbatim when it is a supported locale; the
    bare endpoint gets the default. Any other segment resolves to None.
    """
    if locale is None:
        return default
    return locale if locale in supported else None
