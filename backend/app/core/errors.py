"""
Mobile API error envelope.

The web API reports errors as ``{"detail": {"code", "message"}}`` through
HTTPException. Mobile clients get a flat envelope instead:

    {"success": false, "error": {"code": "...", "message": "...", "details": ...}}

Successful mobile responses are wrapped as ``{"success": true, "data": ...}``.
"""

from __future__ import annotations

import enum
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

MOBILE_PATH_PREFIX = "/api/v1/mobile"


class ErrorCode(str, enum.Enum):
    """Error codes understood by the mobile clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_API_KEY = "INVALID_API_KEY"
    MISSING_API_KEY = "MISSING_API_KEY"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    MISSING_TOKEN = "MISSING_TOKEN"


STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.RATE_LIMIT_EXCEEDED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INVALID_API_KEY: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.MISSING_API_KEY: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.MISSING_TOKEN: status.HTTP_401_UNAUTHORIZED,
}


class ApiError(Exception):
    """Raised by mobile endpoints; rendered by ``api_error_handler``."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Any | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code or STATUS_BY_CODE[code]


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------

def success_envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_envelope(code: ErrorCode | str, message: str, details: Any | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {
        "code": code.value if isinstance(code, ErrorCode) else code,
        "message": message,
    }
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, exc.details),
        headers={"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Render request validation failures.

    Mobile paths get the envelope with per-field messages, every other path
    keeps FastAPI's default 422 body.
    """
    if request.url.path.startswith(MOBILE_PATH_PREFIX):
        details: dict[str, list[str]] = {}
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
            details.setdefault(field, []).append(err.get("msg", "Invalid value"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope(ErrorCode.VALIDATION_ERROR, "Invalid request data", details),
        )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())},
    )

