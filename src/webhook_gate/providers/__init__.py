"""
Provider adapters: one per signing convention.
"""

from .base import EventHandler, WebhookProvider, parse_json_object
from .generic import HmacHeaderProvider
from .stripe import StripeProvider

__all__ = [
    "EventHandler",
    "WebhookProvider",
    "parse_json_object",
    "HmacHeaderProvider",
    "StripeProvider",
]
