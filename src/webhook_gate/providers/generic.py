"""
Generic HMAC adapter for providers that send the digest and the timestamp
in two separate headers (n8n and similar automation tools).
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..errors import MalformedRequestError
from ..headers import get_header
from ..models import VerificationResult
from ..signing import Clock, DEFAULT_TOLERANCE_SECONDS, compute_hmac, now_unix, signed_payload
from ..verifier import verify_signature
from .base import EventHandler, WebhookProvider

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE_HEADER = "X-LTM-Signature"
DEFAULT_TIMESTAMP_HEADER = "X-LTM-Timestamp"


class HmacHeaderProvider(WebhookProvider):
    """
    Adapter for ``X-...-Signature: <hex>`` plus ``X-...-Timestamp: <ts>``.

    Args:
        secret: Shared signing secret
        provider_id: Id the adapter is registered under (default: n8n)
        signature_header: Header carrying the hex digest
        timestamp_header: Header carrying the Unix timestamp
        tolerance_seconds: Replay window in seconds
        on_event: Async business handler for verified payloads
        now: Optional clock, for tests
    """

    provider_id = "n8n"

    def __init__(
        self,
        secret: str,
        provider_id: str | None = None,
        signature_header: str = DEFAULT_SIGNATURE_HEADER,
        timestamp_header: str = DEFAULT_TIMESTAMP_HEADER,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        on_event: EventHandler | None = None,
        now: Clock | None = None,
    ):
        super().__init__(
            secret,
            tolerance_seconds=tolerance_seconds,
            on_event=on_event,
            now=now,
        )
        if provider_id:
            self.provider_id = provider_id
        self.signature_header = signature_header
        self.timestamp_header = timestamp_header

    def verify(self, raw_body: bytes, headers: Mapping[str, str]) -> VerificationResult:
        signature = get_header(headers, self.signature_header)
        timestamp = get_header(headers, self.timestamp_header)
        if not signature or not timestamp:
            raise MalformedRequestError("Missing signature or timestamp")

        return verify_signature(
            raw_body,
            signature,
            timestamp,
            self._secret,
            tolerance_seconds=self.tolerance_seconds,
            now=self.now,
        )

    def signed_headers(self, raw_body: bytes, timestamp: int | None = None) -> dict[str, str]:
        ts = timestamp if timestamp is not None else now_unix(self.now)
        digest = compute_hmac(signed_payload(ts, raw_body), self._secret)
        return {
            self.signature_header: digest,
            self.timestamp_header: str(ts),
        }

    async def log_event(self, payload: dict[str, Any]) -> None:
        # Payload values may hold user data; only the shape is logged
        inner = payload.get("payload")
        logger.info(
            "Automation event provider=%s event=%s payload_keys=%s",
            self.provider_id,
            payload.get("event"),
            sorted(inner) if isinstance(inner, dict) else [],
        )
