"""
Signature verification: header parsing, replay window and constant-time
digest comparison.
"""

from __future__ import annotations

import binascii
import hmac
import string

from .errors import ErrorKind
from .headers import parse_signature_header, serialize_signature_header
from .models import VerificationRequest, VerificationResult
from .signing import Clock, DEFAULT_TOLERANCE_SECONDS, compute_hmac, is_fresh, signed_payload


_HEX_DIGITS = frozenset(string.hexdigits)


def _decode_hex(value: str) -> bytes | None:
    # fromhex would skip whitespace between byte pairs
    if not _HEX_DIGITS.issuperset(value):
        return None
    try:
        return bytes.fromhex(value)
    except (ValueError, binascii.Error):
        return None


def verify(request: VerificationRequest, now: Clock | None = None) -> VerificationResult:
    """
    Verify a signed webhook body.

    Runs in a single pass with no shared state, so it is safe to call from
    any number of concurrent tasks. Bad input never raises; every failure
    comes back as a rejected VerificationResult.

    Args:
        request: Body, header and provider configuration
        now: Optional clock returning Unix seconds, for tests

    Returns:
        VerificationResult, accepted or rejected with a stable reason
    """
    header = parse_signature_header(request.header)

    if header.timestamp == 0:
        return VerificationResult.rejected(
            ErrorKind.MISSING_TIMESTAMP, "missing or invalid timestamp"
        )

    if not is_fresh(header.timestamp, request.tolerance_seconds, now=now):
        return VerificationResult.rejected(
            ErrorKind.STALE_TIMESTAMP, "timestamp outside tolerance"
        )

    # A repeated scheme may be a substituted signature injected upstream
    if request.scheme in header.duplicates:
        return VerificationResult.rejected(
            ErrorKind.DUPLICATE_SIGNATURE, "duplicate signature for scheme"
        )

    provided = header.signatures.get(request.scheme)
    if provided is None:
        return VerificationResult.rejected(
            ErrorKind.MISSING_SCHEME_SIGNATURE, "missing signature for scheme"
        )

    expected = compute_hmac(
        signed_payload(header.timestamp, request.raw_body),
        request.secret,
        request.algorithm,
    )

    expected_bytes = bytes.fromhex(expected)
    provided_bytes = _decode_hex(provided)
    if not provided_bytes:
        return VerificationResult.rejected(ErrorKind.INVALID_SIGNATURE, "invalid signature")

    if len(provided_bytes) != len(expected_bytes):
        return VerificationResult.rejected(
            ErrorKind.INVALID_SIGNATURE, "signature length mismatch"
        )

    if not hmac.compare_digest(expected_bytes, provided_bytes):
        return VerificationResult.rejected(ErrorKind.INVALID_SIGNATURE, "invalid signature")

    return VerificationResult.accepted(header.timestamp)


def verify_signature(
    raw_body: bytes,
    signature: str,
    timestamp: str | int,
    secret: str,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: Clock | None = None,
) -> VerificationResult:
    """
    Verify a digest and timestamp delivered in separate headers.

    Assembles the equivalent ``t=<timestamp>,v1=<signature>`` header and
    runs the regular verification. Values carrying a segment separator are
    rejected before assembly so they cannot inject extra fields.
    """
    timestamp = str(timestamp).strip()
    signature = signature.strip()
    if "," in timestamp:
        return VerificationResult.rejected(
            ErrorKind.MISSING_TIMESTAMP, "missing or invalid timestamp"
        )
    if "," in signature:
        return VerificationResult.rejected(ErrorKind.INVALID_SIGNATURE, "invalid signature")

    header = serialize_signature_header(timestamp, "v1", signature)
    return verify(
        VerificationRequest(
            raw_body=raw_body,
            header=header,
            secret=secret,
            tolerance_seconds=tolerance_seconds,
        ),
        now=now,
    )
