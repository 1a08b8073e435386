"""
Provider registry and request dispatcher.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from starlette.requests import Request
from starlette.responses import Response

from .errors import UnsupportedProviderError, WebhookError
from .headers import redact_headers
from .models import ProviderHandler
from .responses import (
    exception_response,
    internal_error_response,
    method_not_allowed_response,
)

logger = logging.getLogger(__name__)

ALLOWED_METHOD = "POST"


class ProviderRegistry(Mapping[str, ProviderHandler]):
    """
    Provider id to handler mapping, filled once at startup.

    Handlers are registered while the application is being built. Once a
    dispatcher takes the registry it is frozen and any further
    ``register`` call raises.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register("stripe", StripeProvider(secret="whsec_..."))
        >>> dispatcher = WebhookDispatcher(registry)
    """

    def __init__(self, handlers: Mapping[str, ProviderHandler] | None = None):
        self._handlers: dict[str, ProviderHandler] = {}
        self._frozen = False
        for provider_id, handler in (handlers or {}).items():
            self.register(provider_id, handler)

    def register(self, provider_id: str, handler: ProviderHandler) -> None:
        """
        Register a handler under a provider id.

        Raises:
            RuntimeError: If the registry is already frozen
            ValueError: If the id is empty or already registered
        """
        if self._frozen:
            raise RuntimeError("Provider registry is frozen")
        if not provider_id:
            raise ValueError("Provider id must not be empty")
        if provider_id in self._handlers:
            raise ValueError(f"Provider '{provider_id}' is already registered")
        self._handlers[provider_id] = handler

    def freeze(self) -> Mapping[str, ProviderHandler]:
        """Stop accepting registrations and return a read-only view."""
        self._frozen = True
        return MappingProxyType(self._handlers)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, provider_id: str) -> ProviderHandler:
        return self._handlers[provider_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)


class WebhookDispatcher:
    """
    Route ``/webhooks/{provider}`` requests to registered handlers.

    Only POST is accepted. Unknown providers get a 404, handler errors are
    contained here and turned into sanitized responses so one failing
    request never affects another.

    Args:
        registry: Registry to dispatch from; it is frozen on construction
    """

    def __init__(self, registry: ProviderRegistry):
        self._handlers = registry.freeze()

    @property
    def providers(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, provider_id: str, request: Request) -> Response:
        logger.info(
            "Received webhook provider=%s method=%s headers=%s",
            provider_id,
            request.method,
            redact_headers(request.headers),
        )

        if request.method != ALLOWED_METHOD:
            return method_not_allowed_response()

        handler = self._handlers.get(provider_id)
        if handler is None:
            logger.warning("Unsupported webhook provider: %s", provider_id)
            return exception_response(UnsupportedProviderError(provider_id))

        try:
            return await handler(request)
        except WebhookError as e:
            logger.warning(
                "Webhook rejected provider=%s kind=%s: %s",
                provider_id,
                e.kind.value,
                e.message,
            )
            return exception_response(e)
        except Exception:
            logger.exception("Webhook handler failed provider=%s", provider_id)
            return internal_error_response()

    async def endpoint(self, request: Request) -> Response:
        """Starlette endpoint reading the provider id from the path."""
        return await self.dispatch(request.path_params["provider"], request)
