"""
ASGI application exposing ``/webhooks/{provider}``.
"""

from __future__ import annotations

import logging
from typing import Mapping

from starlette.applications import Starlette
from starlette.routing import Route

from .providers import EventHandler, HmacHeaderProvider, StripeProvider
from .registry import ProviderRegistry, WebhookDispatcher
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhooks/{provider}"

# Non-POST methods are routed too so the dispatcher can answer 405 itself
ROUTED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


def build_registry(
    settings: Settings,
    event_handlers: Mapping[str, EventHandler] | None = None,
) -> ProviderRegistry:
    """
    Build the default registry from settings.

    Providers without a configured secret are left out, so requests for
    them are answered with 404 rather than verified against an empty key.

    Args:
        settings: Loaded settings
        event_handlers: Optional business handlers keyed by provider id
    """
    handlers = event_handlers or {}
    registry = ProviderRegistry()

    stripe_secret = settings.get_secret(StripeProvider.provider_id)
    if stripe_secret:
        registry.register(
            StripeProvider.provider_id,
            StripeProvider(
                stripe_secret,
                tolerance_seconds=settings.webhook_tolerance_sec,
                on_event=handlers.get(StripeProvider.provider_id),
            ),
        )
    else:
        logger.warning("STRIPE_WEBHOOK_SECRET not configured; stripe webhooks disabled")

    n8n_secret = settings.get_secret(HmacHeaderProvider.provider_id)
    if n8n_secret:
        registry.register(
            HmacHeaderProvider.provider_id,
            HmacHeaderProvider(
                n8n_secret,
                signature_header=settings.n8n_signature_header,
                timestamp_header=settings.n8n_timestamp_header,
                tolerance_seconds=settings.webhook_tolerance_sec,
                on_event=handlers.get(HmacHeaderProvider.provider_id),
            ),
        )
    else:
        logger.warning("N8N_WEBHOOK_SECRET not configured; n8n webhooks disabled")

    return registry


def create_app(
    registry: ProviderRegistry | None = None,
    settings: Settings | None = None,
    event_handlers: Mapping[str, EventHandler] | None = None,
    debug: bool = False,
) -> Starlette:
    """
    Create the webhook ASGI application.

    Args:
        registry: Prebuilt registry; when omitted one is built from settings
        settings: Settings to build from (default: environment)
        event_handlers: Business handlers keyed by provider id, used only
            when the registry is built from settings
        debug: Starlette debug flag

    Example:
        >>> app = create_app()
        >>> # uvicorn webhook_gate.app:create_app --factory
    """
    if registry is None:
        registry = build_registry(settings or get_settings(), event_handlers)

    dispatcher = WebhookDispatcher(registry)
    logger.info("Webhook providers registered: %s", dispatcher.providers)

    app = Starlette(
        debug=debug,
        routes=[Route(WEBHOOK_PATH, dispatcher.endpoint, methods=ROUTED_METHODS)],
    )
    app.state.dispatcher = dispatcher
    return app
