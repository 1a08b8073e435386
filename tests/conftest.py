"""Shared fixtures."""

import pytest

from webhook_gate import HmacHeaderProvider, ProviderRegistry, StripeProvider, create_app

SECRET = "whsec_test_secret"
N8N_SECRET = "n8n-test-secret"
NOW = 1_700_000_000


def fixed_clock() -> float:
    return float(NOW)


class RecordingHandler:
    """Business handler that remembers every payload it receives."""

    def __init__(self):
        self.payloads = []

    async def __call__(self, payload):
        self.payloads.append(payload)


@pytest.fixture
def events():
    return RecordingHandler()


@pytest.fixture
def stripe_provider(events):
    return StripeProvider(SECRET, on_event=events, now=fixed_clock)


@pytest.fixture
def n8n_provider(events):
    return HmacHeaderProvider(N8N_SECRET, on_event=events, now=fixed_clock)


@pytest.fixture
def registry(stripe_provider, n8n_provider):
    return ProviderRegistry({
        "stripe": stripe_provider,
        "n8n": n8n_provider,
    })


@pytest.fixture
def app(registry):
    return create_app(registry=registry)
