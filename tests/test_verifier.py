"""Tests for the verifier."""

import asyncio
import statistics
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from webhook_gate import ErrorKind, VerificationRequest, verify, verify_signature
from webhook_gate.signing import compute_hmac, sign, signed_payload

from conftest import NOW, SECRET, fixed_clock

BODY = b'{"id":"evt_123","type":"invoice.paid","data":{"object":{"id":"in_1"}}}'


def make_request(body=BODY, header=None, secret=SECRET, tolerance=300, scheme="v1"):
    if header is None:
        header = sign(body, SECRET, timestamp=NOW)
    return VerificationRequest(
        raw_body=body,
        header=header,
        secret=secret,
        tolerance_seconds=tolerance,
        scheme=scheme,
    )


def flip_byte(hex_digest: str, index: int) -> str:
    raw = bytearray(bytes.fromhex(hex_digest))
    raw[index] ^= 0x01
    return raw.hex()


class TestVerify:
    """Tests for verify function."""

    def test_valid_signature_accepted(self):
        """Correct digest over '<ts>.<body>' with a fresh timestamp is accepted."""
        result = verify(make_request(), now=fixed_clock)

        assert result.verified is True
        assert result.error is None
        assert result.kind is None
        assert result.timestamp == NOW

    def test_tampered_body_rejected(self):
        """Flipping one byte of the body invalidates the signature."""
        tampered = bytearray(BODY)
        tampered[10] ^= 0x01
        request = make_request(
            body=bytes(tampered),
            header=sign(BODY, SECRET, timestamp=NOW),
        )

        result = verify(request, now=fixed_clock)

        assert result.verified is False
        assert result.kind is ErrorKind.INVALID_SIGNATURE
        assert result.error == "invalid signature"

    def test_stale_timestamp_rejected(self):
        """Mathematically correct digest is still rejected when too old."""
        ts = NOW - 300 - 60
        result = verify(make_request(header=sign(BODY, SECRET, timestamp=ts)), now=fixed_clock)

        assert result.verified is False
        assert result.kind is ErrorKind.STALE_TIMESTAMP
        assert result.error == "timestamp outside tolerance"

    def test_future_timestamp_rejected(self):
        """Timestamps beyond the window in the future are rejected."""
        ts = NOW + 301
        result = verify(make_request(header=sign(BODY, SECRET, timestamp=ts)), now=fixed_clock)
        assert result.kind is ErrorKind.STALE_TIMESTAMP

    def test_missing_timestamp(self):
        """Header without t= is rejected before any digest work."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        result = verify(make_request(header=f"v1={digest}"), now=fixed_clock)

        assert result.kind is ErrorKind.MISSING_TIMESTAMP
        assert result.error == "missing or invalid timestamp"

    def test_missing_scheme(self):
        """Header without the configured scheme is rejected."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        result = verify(make_request(header=f"t={NOW},v0={digest}"), now=fixed_clock)

        assert result.kind is ErrorKind.MISSING_SCHEME_SIGNATURE
        assert result.error == "missing signature for scheme"

    def test_other_scheme_selected(self):
        """A non-default scheme is looked up when configured."""
        request = make_request(header=sign(BODY, SECRET, timestamp=NOW, scheme="v2"), scheme="v2")
        assert verify(request, now=fixed_clock).verified is True

    def test_duplicate_scheme_rejected(self):
        """A valid digest is not accepted when the scheme is repeated."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        header = f"t={NOW},v1={'0' * 64},v1={digest}"

        result = verify(make_request(header=header), now=fixed_clock)

        assert result.verified is False
        assert result.kind is ErrorKind.DUPLICATE_SIGNATURE

    def test_wrong_secret(self):
        """Digest made with another secret is rejected."""
        header = sign(BODY, "another-secret", timestamp=NOW)
        result = verify(make_request(header=header), now=fixed_clock)
        assert result.kind is ErrorKind.INVALID_SIGNATURE

    def test_non_hex_signature(self):
        """Undecodable signatures are rejected without raising."""
        result = verify(make_request(header=f"t={NOW},v1=not-hex!"), now=fixed_clock)
        assert result.kind is ErrorKind.INVALID_SIGNATURE
        assert result.error == "invalid signature"

    def test_length_mismatch(self):
        """Truncated digest is reported as a length mismatch."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        result = verify(make_request(header=f"t={NOW},v1={digest[:32]}"), now=fixed_clock)

        assert result.kind is ErrorKind.INVALID_SIGNATURE
        assert result.error == "signature length mismatch"

    def test_uppercase_hex_accepted(self):
        """Hex case does not matter once decoded to bytes."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET).upper()
        result = verify(make_request(header=f"t={NOW},v1={digest}"), now=fixed_clock)
        assert result.verified is True

    def test_reason_never_contains_secret_or_body(self):
        """Rejection reasons are short stable strings."""
        headers = [
            "",
            f"t={NOW}",
            f"t={NOW},v1=zz",
            f"t={NOW},v1={'ab' * 32}",
            sign(BODY, SECRET, timestamp=NOW - 10_000),
        ]
        for header in headers:
            result = verify(make_request(header=header), now=fixed_clock)
            assert result.verified is False
            assert SECRET not in result.error
            assert "evt_123" not in result.error

    def test_idempotent(self):
        """Verifying the same request twice gives the same result."""
        request = make_request()
        assert verify(request, now=fixed_clock) == verify(request, now=fixed_clock)


class TestVerifySignature:
    """Tests for verify_signature (separate digest and timestamp headers)."""

    def test_valid(self):
        """Digest and timestamp from separate headers verify."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        result = verify_signature(BODY, digest, str(NOW), SECRET, now=fixed_clock)
        assert result.verified is True

    def test_invalid_timestamp(self):
        """Non-numeric timestamp header is a missing timestamp."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        result = verify_signature(BODY, digest, "yesterday", SECRET, now=fixed_clock)
        assert result.kind is ErrorKind.MISSING_TIMESTAMP

    def test_separator_injection_rejected(self):
        """Commas in either value cannot smuggle in extra header fields."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)

        result = verify_signature(BODY, digest, f"{NOW},v1={digest}", SECRET, now=fixed_clock)
        assert result.kind is ErrorKind.MISSING_TIMESTAMP

        result = verify_signature(BODY, f"{digest},t=1", str(NOW), SECRET, now=fixed_clock)
        assert result.kind is ErrorKind.INVALID_SIGNATURE

    def test_spaced_hex_rejected(self):
        """Digest bytes separated by whitespace are not accepted."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        spaced = " ".join(digest[i:i + 2] for i in range(0, len(digest), 2))

        result = verify_signature(BODY, spaced, str(NOW), SECRET, now=fixed_clock)

        assert result.verified is False
        assert result.kind is ErrorKind.INVALID_SIGNATURE

    def test_stale(self):
        """Tolerance applies to the timestamp header."""
        ts = NOW - 1000
        digest = compute_hmac(signed_payload(ts, BODY), SECRET)
        result = verify_signature(BODY, digest, ts, SECRET, tolerance_seconds=300, now=fixed_clock)
        assert result.kind is ErrorKind.STALE_TIMESTAMP


class TestConstantTime:
    """
    Qualitative timing guard for the digest comparison.

    The bound only catches gross regressions such as an early-exit
    comparison; it is not a side-channel measurement.
    """

    ROUNDS = 3000

    def _median_ns(self, request):
        samples = []
        for _ in range(self.ROUNDS):
            start = time.perf_counter_ns()
            verify(request, now=fixed_clock)
            samples.append(time.perf_counter_ns() - start)
        return statistics.median(samples)

    def test_first_and_last_byte_mismatch_take_similar_time(self):
        """Where the digests differ does not measurably change verify time."""
        digest = compute_hmac(signed_payload(NOW, BODY), SECRET)
        first = make_request(header=f"t={NOW},v1={flip_byte(digest, 0)}")
        last = make_request(header=f"t={NOW},v1={flip_byte(digest, 31)}")

        assert verify(first, now=fixed_clock).kind is ErrorKind.INVALID_SIGNATURE
        assert verify(last, now=fixed_clock).kind is ErrorKind.INVALID_SIGNATURE

        # Interleave to spread out scheduler and cache noise
        first_times = []
        last_times = []
        for _ in range(5):
            first_times.append(self._median_ns(first))
            last_times.append(self._median_ns(last))

        ratio = statistics.median(first_times) / statistics.median(last_times)
        assert 0.5 < ratio < 2.0


class TestConcurrency:
    """Verifications share no state."""

    def test_many_concurrent_verifications(self):
        """1000 mixed verifications across threads each get their own outcome."""
        cases = []
        for i in range(1000):
            body = f'{{"n":{i}}}'.encode()
            if i % 3 == 0:
                header = sign(body, SECRET, timestamp=NOW)
                expected = None
            elif i % 3 == 1:
                header = sign(body, "wrong-secret", timestamp=NOW)
                expected = ErrorKind.INVALID_SIGNATURE
            else:
                header = sign(body, SECRET, timestamp=NOW - 1000)
                expected = ErrorKind.STALE_TIMESTAMP
            cases.append((make_request(body=body, header=header), expected))

        with ThreadPoolExecutor(max_workers=32) as pool:
            results = list(pool.map(lambda case: verify(case[0], now=fixed_clock), cases))

        for (_, expected), result in zip(cases, results):
            if expected is None:
                assert result.verified is True
            else:
                assert result.verified is False
                assert result.kind is expected

    @pytest.mark.asyncio
    async def test_concurrent_tasks(self):
        """Verification from many asyncio tasks resolves independently."""
        async def run(i):
            body = f'{{"n":{i}}}'.encode()
            secret = SECRET if i % 2 == 0 else "wrong-secret"
            request = make_request(body=body, header=sign(body, secret, timestamp=NOW))
            await asyncio.sleep(0)
            return i, verify(request, now=fixed_clock)

        results = await asyncio.gather(*(run(i) for i in range(1000)))

        for i, result in results:
            assert result.verified is (i % 2 == 0)
