"""
Shared flow for provider adapters.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Mapping

from starlette.requests import Request
from starlette.responses import Response

from ..errors import MalformedRequestError
from ..models import VerificationResult
from ..responses import rejection_response, success_response
from ..signing import Clock, DEFAULT_TOLERANCE_SECONDS

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[Any]]


def parse_json_object(raw_body: bytes) -> dict[str, Any]:
    """
    Parse a verified body as a JSON object.

    Raises:
        MalformedRequestError: If the body is not valid JSON or not an object
    """
    try:
        payload = json.loads(raw_body)
    except (UnicodeDecodeError, ValueError, RecursionError):
        raise MalformedRequestError("Invalid payload") from None

    if not isinstance(payload, dict):
        raise MalformedRequestError("Invalid payload")
    return payload


class WebhookProvider:
    """
    Base class for provider adapters.

    Subclasses decide which headers carry the signature and how they map
    onto the shared verifier; the request flow is the same for all:
    read raw bytes, verify, parse JSON, hand the payload to ``on_event``.

    Args:
        secret: Shared signing secret for this provider
        tolerance_seconds: Replay window in seconds (default: 300)
        on_event: Async business handler called with the parsed payload
            after verification succeeds
        now: Optional clock returning Unix seconds, for tests
    """

    provider_id: str = ""

    def __init__(
        self,
        secret: str,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        on_event: EventHandler | None = None,
        now: Clock | None = None,
    ):
        if not secret:
            raise ValueError("secret is required")
        self._secret = secret
        self.tolerance_seconds = tolerance_seconds
        self.on_event = on_event or self.log_event
        self.now = now

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_id={self.provider_id!r})"

    def verify(self, raw_body: bytes, headers: Mapping[str, str]) -> VerificationResult:
        """
        Verify the request signature.

        Raises:
            MalformedRequestError: If required signature headers are missing
        """
        raise NotImplementedError

    def signed_headers(self, raw_body: bytes, timestamp: int | None = None) -> dict[str, str]:
        """Headers a genuine sender would attach to ``raw_body``."""
        raise NotImplementedError

    async def log_event(self, payload: dict[str, Any]) -> None:
        logger.info(
            "Webhook event provider=%s keys=%s",
            self.provider_id,
            sorted(payload),
        )

    async def __call__(self, request: Request) -> Response:
        raw_body = await request.body()

        result = self.verify(raw_body, request.headers)
        if not result.verified:
            logger.warning(
                "Webhook signature rejected provider=%s reason=%s",
                self.provider_id,
                result.error,
            )
            return rejection_response(result)

        payload = parse_json_object(raw_body)
        await self.on_event(payload)
        return success_response()
