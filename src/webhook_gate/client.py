"""
Client for sending signed webhooks to a webhook-gate endpoint.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

import httpx

from .providers.base import WebhookProvider

# Default local endpoint
DEFAULT_BASE_URL = "http://localhost:8000"


def _encode_body(payload: bytes | str | Mapping[str, Any]) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class WebhookClient:
    """
    Client that signs payloads the way a provider does and POSTs them.

    Useful for smoke-testing a deployment and for end-to-end tests.

    Args:
        base_url: Base URL of the webhook endpoint.
            Default: http://localhost:8000
        timeout_s: Request timeout in seconds. Default: 5.0
        transport: Optional httpx transport (e.g. ``httpx.ASGITransport``)

    Example:
        >>> client = WebhookClient("https://hooks.example.com")
        >>> provider = StripeProvider(secret="whsec_...")
        >>> response = await client.send(provider, {"type": "invoice.paid"})
        >>> response.status_code
        200
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    def url_for(self, provider_id: str) -> str:
        return f"{self.base_url}/webhooks/{provider_id}"

    def build_request(
        self,
        provider: WebhookProvider,
        payload: bytes | str | Mapping[str, Any],
        timestamp: int | None = None,
        invalid_signature: bool = False,
    ) -> tuple[str, bytes, dict[str, str]]:
        """
        Build URL, body and headers for a signed webhook.

        Args:
            provider: Adapter whose signing convention and secret to use
            payload: Body as bytes, text or a JSON-serializable mapping
            timestamp: Signature timestamp, defaults to now
            invalid_signature: Sign with a wrong digest, for negative tests

        Returns:
            Tuple of (url, body bytes, headers)
        """
        body = _encode_body(payload)
        signed_body = body + b"-tampered" if invalid_signature else body
        headers = {"Content-Type": "application/json"}
        headers.update(provider.signed_headers(signed_body, timestamp=timestamp))
        return self.url_for(provider.provider_id), body, headers

    async def send(
        self,
        provider: WebhookProvider,
        payload: bytes | str | Mapping[str, Any],
        timestamp: int | None = None,
        invalid_signature: bool = False,
    ) -> httpx.Response:
        """
        Send a signed webhook asynchronously.

        Raises:
            httpx.HTTPError: On network errors
        """
        url, body, headers = self.build_request(
            provider, payload, timestamp=timestamp, invalid_signature=invalid_signature
        )

        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
            return await client.post(url, content=body, headers=headers)

    def send_sync(
        self,
        provider: WebhookProvider,
        payload: bytes | str | Mapping[str, Any],
        timestamp: int | None = None,
        invalid_signature: bool = False,
    ) -> httpx.Response:
        """
        Send a signed webhook synchronously.

        Raises:
            httpx.HTTPError: On network errors
        """
        url, body, headers = self.build_request(
            provider, payload, timestamp=timestamp, invalid_signature=invalid_signature
        )

        with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
            return client.post(url, content=body, headers=headers)
