"""Webhook Signature — verification and parsing of inbound Stripe events.

Invariants:
    - The Stripe-Signature header is checked with the SDK before the body is parsed
    - Timestamps older than `tolerance_seconds` are rejected (replay guard)
    - Every failure raises WebhookSignatureError; nothing is parsed before verification

Design Decisions:
    - stripe.WebhookSignature.verify_header over Webhook.construct_event: the event
      stays a plain dict for PaymentEvent.from_provider_event
"""

import json

import stripe

from marketplace.core.errors import WebhookSignatureError


def verify_and_parse_event(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    tolerance_seconds: int = 300,
) -> dict:
    """Verify the Stripe-Signature header and return the decoded event."""
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    if not signature_header:
        raise WebhookSignatureError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body, signature_header, secret, tolerance=tolerance_seconds,
        )
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(e.user_message or str(e))
    except UnicodeDecodeError:
        raise WebhookSignatureError("Invalid payload")

    try:
        return json.loads(body)
    except ValueError:
        raise WebhookSignatureError("Invalid payload")
