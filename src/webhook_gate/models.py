"""
Data models for webhook signature verification.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Mapping, Protocol

from starlette.requests import Request
from starlette.responses import Response

from .errors import ErrorKind


class Algorithm(str, Enum):
    """Digest algorithms accepted by the HMAC engine."""

    SHA256 = "sha256"


@dataclass(frozen=True)
class SignatureHeader:
    """
    Parsed form of a ``t=<ts>,v1=<hex>`` signature header.

    Attributes:
        timestamp: Unix seconds from the ``t`` field, 0 when absent or invalid
        signatures: Scheme name (``v1``, ``v0``...) to hex digest
        duplicates: Scheme names that appeared more than once in the header
    """
    timestamp: int = 0
    signatures: Mapping[str, str] = field(default_factory=dict)
    duplicates: frozenset[str] = frozenset()


@dataclass(frozen=True)
class VerificationRequest:
    """
    Input to a single verification.

    Attributes:
        raw_body: Exact request body bytes as received on the wire
        header: Signature header value
        secret: Provider shared secret
        tolerance_seconds: Accepted clock skew around now, in either direction
        scheme: Signature scheme to check (default ``v1``)
        algorithm: HMAC digest algorithm
    """
    raw_body: bytes
    header: str
    secret: str = field(repr=False)
    tolerance_seconds: int = 300
    scheme: str = "v1"
    algorithm: Algorithm = Algorithm.SHA256


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of a verification.

    Attributes:
        verified: Whether the signature was accepted
        error: Short reason when rejected; never contains secret or body data
        kind: Failure category when rejected
        timestamp: Signature timestamp when accepted
    """
    verified: bool
    error: str | None = None
    kind: ErrorKind | None = None
    timestamp: int | None = None

    @classmethod
    def accepted(cls, timestamp: int) -> "VerificationResult":
        return cls(verified=True, timestamp=timestamp)

    @classmethod
    def rejected(cls, kind: ErrorKind, reason: str) -> "VerificationResult":
        return cls(verified=False, error=reason, kind=kind)


class ProviderHandler(Protocol):
    """Anything that turns a raw webhook request into an HTTP response."""

    def __call__(self, request: Request) -> Awaitable[Response]: ...
