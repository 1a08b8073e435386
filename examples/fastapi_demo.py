"""
FastAPI demo mounting the webhook gate.

Usage:
    # Install dependencies
    pip install -e ".[fastapi]"

    # Run the server
    STRIPE_WEBHOOK_SECRET=whsec_demo N8N_WEBHOOK_SECRET=n8n_demo \
        uvicorn examples.fastapi_demo:app --port 8009 --reload

    # Or directly
    python examples/fastapi_demo.py

Test with the Stripe CLI:
    stripe listen --forward-to localhost:8009/webhooks/stripe
    stripe trigger invoice.paid

Environment variables:
    STRIPE_WEBHOOK_SECRET - Stripe endpoint signing secret
    N8N_WEBHOOK_SECRET - Shared secret for n8n workflows
    WEBHOOK_TOLERANCE_SEC - Replay window in seconds (default: 300)
"""

import logging
from collections import Counter

from fastapi import FastAPI

from webhook_gate import create_app

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("fastapi_demo")

# Events seen per type, for the /stats endpoint
event_counts: Counter = Counter()


async def on_stripe_event(event):
    """Count Stripe events by type."""
    event_counts[f"stripe:{event.get('type', 'unknown')}"] += 1
    logger.info("Stripe event %s accepted", event.get("id"))


async def on_n8n_event(event):
    """Count n8n events by name."""
    event_counts[f"n8n:{event.get('event', 'unknown')}"] += 1


app = FastAPI(
    title="Webhook Gate Demo",
    description="Signed webhook receiver for Stripe and n8n",
    version="0.1.0",
)


@app.get("/stats")
async def stats():
    """Accepted events by type."""
    return dict(event_counts)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


# Mounted last so /stats and /health match first
app.mount("/", create_app(event_handlers={"stripe": on_stripe_event, "n8n": on_n8n_event}))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8009)
