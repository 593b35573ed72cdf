"""
Bearer-token gate for the admin API.

:func:`bearer_gate` runs as HTTP middleware in front of routing, so every
request under ``{BASE_PATH}/api`` is checked, whatever its path or method.
Public routes (health, version) are not gated.
"""
from __future__ import annotations
import enum
import secrets
from typing import Optional, Tuple

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from .config import settings

logger = structlog.get_logger(__name__)


class AuthOutcome(str, enum.Enum):
    ALLOWED = "allowed"
    MISSING_HEADER = "missing_header"
    MALFORMED_HEADER = "malformed_header"
    INVALID_TOKEN = "invalid_token"


_REJECTIONS = {
    AuthOutcome.MISSING_HEADER: (401, "Missing authorization header"),
    AuthOutcome.MALFORMED_HEADER: (401, "Invalid authorization header format"),
    AuthOutcome.INVALID_TOKEN: (403, "Invalid API key"),
}


def rejection(outcome: AuthOutcome) -> Tuple[int, str]:
    """HTTP status and error message for a rejected outcome."""
    return _REJECTIONS[outcome]


def check_bearer(authorization: Optional[str], expected: Optional[str]) -> AuthOutcome:
    """Decide whether an ``Authorization`` header value carries the expected token.

    The header is split on single spaces and the second part is the token;
    the scheme word itself is not checked.
    """
    if not authorization:
        return AuthOutcome.MISSING_HEADER

    parts = authorization.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    if not token:
        return AuthOutcome.MALFORMED_HEADER

    if expected is None or not secrets.compare_digest(token.encode(), expected.encode()):
        return AuthOutcome.INVALID_TOKEN

    return AuthOutcome.ALLOWED


def is_admin_path(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


async def bearer_gate(request: Request, call_next):
    if not is_admin_path(request.url.path, settings.admin_prefix):
        return await call_next(request)

    outcome = check_bearer(request.headers.get("authorization"), settings.API_KEY)
    if outcome is not AuthOutcome.ALLOWED:
        status_code, message = rejection(outcome)
        logger.warning(
            "admin_request_rejected",
            method=request.method,
            path=request.url.path,
            outcome=outcome.value,
        )
        return JSONResponse(status_code=status_code, content={"error": message})

    return await call_next(request)
