"""
Signature header parsing and privacy-safe header helpers.
"""

from __future__ import annotations

from typing import Mapping

from .models import SignatureHeader


# Headers that are safe to write to logs
LOGGABLE_HEADERS = frozenset({
    "content-type",
    "user-agent",
    "x-forwarded-for",
})

TIMESTAMP_KEY = "t"

# Enough for any 64-bit Unix time; longer values are never valid
MAX_TIMESTAMP_DIGITS = 19


def _parse_timestamp(value: str) -> int:
    # int() would also accept "+5", " 5" and "1_000"
    if len(value) <= MAX_TIMESTAMP_DIGITS and value.isascii() and value.isdigit():
        return int(value, 10)
    return 0


def parse_signature_header(header: str) -> SignatureHeader:
    """
    Parse a compact signature header.

    Format:
      t=<unix_timestamp>,v1=<hex_digest>[,v0=<hex_digest>...]

    Each segment is split on its first ``=``. Segments without ``=``, with an
    empty key or value, or with a key that is neither ``t`` nor a ``v*``
    scheme are skipped; this never raises. A repeated scheme overwrites the
    earlier value and is recorded in ``duplicates``.

    Args:
        header: The raw header value

    Returns:
        SignatureHeader with timestamp 0 if no valid ``t`` field was found

    Examples:
        >>> parse_signature_header("t=1700000000,v1=ab12")
        SignatureHeader(timestamp=1700000000, signatures={'v1': 'ab12'}, duplicates=frozenset())
        >>> parse_signature_header("garbage").timestamp
        0
    """
    timestamp = 0
    signatures: dict[str, str] = {}
    duplicates: set[str] = set()

    for segment in header.split(","):
        key, sep, value = segment.strip().partition("=")
        if not sep or not key or not value:
            continue

        if key == TIMESTAMP_KEY:
            timestamp = _parse_timestamp(value)
        elif key.startswith("v"):
            if key in signatures:
                duplicates.add(key)
            signatures[key] = value

    return SignatureHeader(
        timestamp=timestamp,
        signatures=signatures,
        duplicates=frozenset(duplicates),
    )


def serialize_signature_header(timestamp: int | str, scheme: str, digest_hex: str) -> str:
    """Format a signature header: ``t=<timestamp>,<scheme>=<digest_hex>``."""
    return f"{TIMESTAMP_KEY}={timestamp},{scheme}={digest_hex}"


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup over a plain mapping."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Keep only headers that are safe to log.

    Signature headers are never included.
    """
    return {
        key.lower(): value
        for key, value in headers.items()
        if key.lower() in LOGGABLE_HEADERS
    }
