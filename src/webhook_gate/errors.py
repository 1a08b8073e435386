"""
Error taxonomy for webhook verification and dispatch.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-stable failure categories and the HTTP status each maps to."""

    MISSING_TIMESTAMP = "missing_timestamp"
    STALE_TIMESTAMP = "stale_timestamp"
    DUPLICATE_SIGNATURE = "duplicate_signature"
    MISSING_SCHEME_SIGNATURE = "missing_scheme_signature"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED_REQUEST = "malformed_request"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    HANDLER_FAILURE = "handler_failure"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def is_authentication_failure(self) -> bool:
        return self.status_code == 401


_STATUS_CODES = {
    ErrorKind.MISSING_TIMESTAMP: 401,
    ErrorKind.STALE_TIMESTAMP: 401,
    ErrorKind.DUPLICATE_SIGNATURE: 401,
    ErrorKind.MISSING_SCHEME_SIGNATURE: 401,
    ErrorKind.INVALID_SIGNATURE: 401,
    ErrorKind.MALFORMED_REQUEST: 400,
    ErrorKind.UNSUPPORTED_PROVIDER: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.HANDLER_FAILURE: 500,
}


class WebhookError(Exception):
    """
    Base error raised by provider handlers.

    The message ends up in the response body, so it must never contain
    secrets or request body content.
    """

    kind: ErrorKind = ErrorKind.HANDLER_FAILURE

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class MalformedRequestError(WebhookError):
    """Missing required headers or an unparsable body."""

    kind = ErrorKind.MALFORMED_REQUEST


class UnsupportedProviderError(WebhookError):
    """No handler is registered for the requested provider id."""

    kind = ErrorKind.UNSUPPORTED_PROVIDER

    def __init__(self, provider_id: str):
        super().__init__(f"Unsupported webhook provider: {provider_id}")
        self.provider_id = provider_id
