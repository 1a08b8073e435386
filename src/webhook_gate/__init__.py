"""
webhook-gate

Verify signed webhooks from multiple providers and dispatch them to
provider-specific handlers.
"""

from .app import build_registry, create_app
from .client import WebhookClient
from .errors import ErrorKind, MalformedRequestError, UnsupportedProviderError, WebhookError
from .headers import parse_signature_header, serialize_signature_header
from .models import Algorithm, SignatureHeader, VerificationRequest, VerificationResult
from .providers import HmacHeaderProvider, StripeProvider, WebhookProvider
from .registry import ProviderRegistry, WebhookDispatcher
from .signing import compute_hmac, is_fresh, sign
from .verifier import verify, verify_signature

__version__ = "0.1.0"

__all__ = [
    "Algorithm",
    "ErrorKind",
    "HmacHeaderProvider",
    "MalformedRequestError",
    "ProviderRegistry",
    "SignatureHeader",
    "StripeProvider",
    "UnsupportedProviderError",
    "VerificationRequest",
    "VerificationResult",
    "WebhookClient",
    "WebhookDispatcher",
    "WebhookError",
    "WebhookProvider",
    "build_registry",
    "compute_hmac",
    "create_app",
    "is_fresh",
    "parse_signature_header",
    "serialize_signature_header",
    "sign",
    "verify",
    "verify_signature",
]

