"""
Stripe webhook adapter.

Stripe sends a single ``Stripe-Signature`` header carrying both the
timestamp and one or more digests: ``t=1700000000,v1=<hex>``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..errors import MalformedRequestError
from ..headers import get_header
from ..models import VerificationRequest, VerificationResult
from ..signing import now_unix, sign
from ..verifier import verify
from .base import WebhookProvider

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"

# Event types with a dedicated log line; anything else is logged as unhandled
HANDLED_EVENTS = frozenset({
    "invoice.paid",
    "invoice.payment_failed",
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "checkout.session.completed",
})


class StripeProvider(WebhookProvider):
    """Adapter for Stripe's embedded-timestamp signature header."""

    provider_id = "stripe"
    scheme = "v1"

    def verify(self, raw_body: bytes, headers: Mapping[str, str]) -> VerificationResult:
        header = get_header(headers, SIGNATURE_HEADER)
        if not header:
            raise MalformedRequestError("Missing stripe-signature header")

        return verify(
            VerificationRequest(
                raw_body=raw_body,
                header=header,
                secret=self._secret,
                tolerance_seconds=self.tolerance_seconds,
                scheme=self.scheme,
            ),
            now=self.now,
        )

    def signed_headers(self, raw_body: bytes, timestamp: int | None = None) -> dict[str, str]:
        ts = timestamp if timestamp is not None else now_unix(self.now)
        return {SIGNATURE_HEADER: sign(raw_body, self._secret, ts, self.scheme)}

    async def log_event(self, payload: dict[str, Any]) -> None:
        event_type = payload.get("type")
        event_id = payload.get("id")
        data = payload.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            obj = {}

        if event_type not in HANDLED_EVENTS:
            logger.info("Unhandled Stripe event type=%s id=%s", event_type, event_id)
            return

        logger.info(
            "Stripe event type=%s id=%s object=%s customer=%s status=%s customer_email=%s",
            event_type,
            event_id,
            obj.get("id"),
            obj.get("customer"),
            obj.get("status"),
            "[REDACTED]" if obj.get("customer_email") else None,
        )
