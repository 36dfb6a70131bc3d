"""Submission request/response schemas"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.spam import MESSAGE_MAX_LENGTH, MESSAGE_MIN_LENGTH

# Bangladesh mobile numbers: +8801xxxxxxxxx, 8801xxxxxxxxx, 01xxxxxxxxx
PHONE_PATTERN = re.compile(r"^(\+880|880|0)?1[3-9]\d{8}$")

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# Latin, Bengali, Devanagari and Arabic letters plus basic punctuation
NAME_PATTERN = re.compile(r"^[\u0980-\u09FF\u0900-\u097F\u0600-\u06FF\u0750-\u077Fa-zA-Z\s.,'-]+$")

MESSAGE_BLOCKED_PATTERNS = (
    re.compile(r"viagra|cialis|pharmacy", re.IGNORECASE),
    re.compile(r"\$\d+|USD|bitcoin|crypto", re.IGNORECASE),
    re.compile(r"click here|visit now|buy now", re.IGNORECASE),
)

NAME_MAX_LENGTH = 120


class SubmissionPayload(BaseModel):
    """Validated submission fields.

    Field names accept both the wire names (``seatName``, ``shareName``)
    and their snake_case equivalents.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    contact: str = Field(..., min_length=1)
    email: Optional[str] = None
    district: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    seat_name: Optional[str] = Field(None, alias="seatName", max_length=NAME_MAX_LENGTH)
    share_name: bool = Field(False, alias="shareName")
    message: str = Field(..., min_length=MESSAGE_MIN_LENGTH, max_length=MESSAGE_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v and not NAME_PATTERN.match(v):
            raise ValueError(
                "Name contains invalid characters. Only letters, spaces, and basic punctuation are allowed"
            )
        return v or None

    @field_validator("contact")
    @classmethod
    def validate_contact(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError(
                "Please enter a valid Bangladesh phone number (e.g., +8801xxxxxxxxx or 01xxxxxxxxx)"
            )
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        if v and not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v or None

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        for pattern in MESSAGE_BLOCKED_PATTERNS:
            if pattern.search(v):
                raise ValueError("Message contains inappropriate content or spam patterns")
        return v


class FieldIssue(BaseModel):
    """One schema failure, keyed by request field name"""
    field: str
    message: str


class ErrorBody(BaseModel):
    code: str = Field(..., description="Machine-readable error code (e.g., RATE_LIMIT, VALIDATION)")
    message: str = Field(..., description="Human-readable error message")
    issues: Optional[List[FieldIssue]] = Field(None, description="Per-field failures for VALIDATION errors")


class SubmitResponse(BaseModel):
    """Response envelope for POST /api/submit"""
    ok: bool
    error: Optional[ErrorBody] = None


def issues_from_validation_error(exc: ValidationError) -> List[Dict[str, str]]:
    """Flatten a pydantic ValidationError into ``[{field, message}]``."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        issues.append({"field": field, "message": message})
    return issues
