"""
HMAC digests, replay window checks and signature generation.
"""

from __future__ import annotations

import hmac
import time
from typing import Callable

from .headers import serialize_signature_header
from .models import Algorithm

Clock = Callable[[], float]

DEFAULT_TOLERANCE_SECONDS = 300


def now_unix(clock: Clock | None = None) -> int:
    return int((clock or time.time)())


def is_fresh(
    timestamp: int,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: Clock | None = None,
) -> bool:
    """
    Check that a signature timestamp is within the tolerance window.

    The window is symmetric, so timestamps too far in the future are
    rejected as well as stale ones.
    """
    skew = abs(now_unix(now) - timestamp)
    return skew <= tolerance_seconds


def signed_payload(timestamp: int, raw_body: bytes) -> bytes:
    """Bytes covered by the signature: ``b"<timestamp>." + raw_body``."""
    return str(timestamp).encode("ascii") + b"." + raw_body


def compute_hmac(
    payload: bytes,
    secret: str,
    algorithm: Algorithm = Algorithm.SHA256,
) -> str:
    """
    Compute a lowercase hex HMAC over ``payload``.

    ``payload`` must be the untouched wire bytes. Decoding or re-serializing
    JSON first breaks verification for byte-different but equal payloads.
    """
    return hmac.new(secret.encode("utf-8"), payload, algorithm.value).hexdigest()


def sign(
    raw_body: bytes,
    secret: str,
    timestamp: int | None = None,
    scheme: str = "v1",
    algorithm: Algorithm = Algorithm.SHA256,
) -> str:
    """
    Produce a full signature header for ``raw_body``.

    Args:
        raw_body: Body bytes exactly as they will be sent
        secret: Shared secret
        timestamp: Unix seconds, defaults to now
        scheme: Scheme name written into the header

    Returns:
        ``t=<timestamp>,<scheme>=<hex_digest>``
    """
    ts = timestamp if timestamp is not None else now_unix()
    digest = compute_hmac(signed_payload(ts, raw_body), secret, algorithm)
    return serialize_signature_header(ts, scheme, digest)
