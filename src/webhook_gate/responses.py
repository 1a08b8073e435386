"""
Map verification and dispatch outcomes to JSON responses.
"""

from typing import Any

from starlette.responses import JSONResponse

from .errors import ErrorKind, WebhookError
from .models import VerificationResult

GENERIC_ERROR = "Internal server error"


def success_response(**extra: Any) -> JSONResponse:
    """200 with ``{"ok": true}`` plus any extra fields."""
    return JSONResponse(status_code=200, content={"ok": True, **extra})


def error_response(kind: ErrorKind, message: str) -> JSONResponse:
    """Error body ``{"error": message}`` with the status mapped from ``kind``."""
    headers = {"Allow": "POST"} if kind is ErrorKind.METHOD_NOT_ALLOWED else None
    return JSONResponse(
        status_code=kind.status_code,
        content={"error": message},
        headers=headers,
    )


def rejection_response(result: VerificationResult) -> JSONResponse:
    """Response for a failed verification (always an authentication failure)."""
    kind = result.kind or ErrorKind.INVALID_SIGNATURE
    return error_response(kind, result.error or "Signature verification failed")


def exception_response(error: WebhookError) -> JSONResponse:
    return error_response(error.kind, error.message)


def method_not_allowed_response() -> JSONResponse:
    return error_response(ErrorKind.METHOD_NOT_ALLOWED, "Method not allowed")


def internal_error_response() -> JSONResponse:
    """Generic 500; never carries details of the underlying failure."""
    return error_response(ErrorKind.HANDLER_FAILURE, GENERIC_ERROR)
