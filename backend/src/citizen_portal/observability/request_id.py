"""Request correlation IDs.

The current request's ID lives in a ContextVar so every log record emitted
while handling it, including from threadpool stages, can carry it.
"""

import re
import uuid
from contextvars import ContextVar, Token
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "no-request-id"

# Inbound IDs are echoed into logs and headers, so only short opaque tokens are trusted
_INBOUND_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,64}$")

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex


def accept_request_id(inbound: Optional[str]) -> str:
    """Reuse a well-formed inbound ID (from a proxy), otherwise mint one."""
    if inbound and _INBOUND_ID_PATTERN.match(inbound):
        return inbound
    return generate_request_id()


def get_request_id() -> str:
    return request_id_var.get() or NO_REQUEST_ID


def set_request_id(request_id: str) -> Token:
    """Bind ``request_id`` to the current context; pass the token to reset_request_id."""
    return request_id_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_var.reset(token)
