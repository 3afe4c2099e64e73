"""
Webhook Security Module

Signature verification for payment-gateway callbacks:
- Constant-time signature comparison
- Timestamp validation against replays
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

from fastapi import Request

from .shared.errors import ValidationFailed

logger = logging.getLogger(__name__)

# Maximum age of webhook in seconds (5 minutes)
MAX_WEBHOOK_AGE_SECONDS = 300


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""


def constant_time_compare(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_timestamp(timestamp: Optional[str], max_age: int = MAX_WEBHOOK_AGE_SECONDS) -> bool:
    """Reject missing, malformed or stale timestamps"""
    if not timestamp:
        return False

    try:
        age = abs(int(time.time()) - int(timestamp))
    except (ValueError, TypeError):
        logger.warning(f"🚫 Invalid webhook timestamp format: {timestamp}")
        return False

    if age > max_age:
        logger.warning(f"🚫 Webhook timestamp too old: {age}s (max: {max_age}s)")
        return False
    return True


def parse_signature_header(header: str) -> tuple[Optional[str], list[str]]:
    """Split ``t=<ts>,v1=<sig>[,v1=<sig>...]`` into the timestamp and v1 signatures"""
    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1" and value:
            signatures.append(value)
    return timestamp, signatures


def verify_stripe_signature(
    payload: bytes, header: str, secret: str, max_age: int = MAX_WEBHOOK_AGE_SECONDS
) -> None:
    """
    Verify a Stripe-style ``Stripe-Signature`` header.

    The signed message is ``<timestamp>.<raw body>``.

    Raises:
        WebhookSignatureError: If the header is missing, stale or matches no signature
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    if not header:
        raise WebhookSignatureError("Missing signature header")

    timestamp, signatures = parse_signature_header(header)
    if not timestamp or not signatures:
        raise WebhookSignatureError("Malformed signature header")
    if not verify_timestamp(timestamp, max_age):
        raise WebhookSignatureError("Webhook timestamp outside tolerance")

    expected = compute_hmac_sha256(secret, f"{timestamp}.".encode("utf-8") + payload)
    if not any(constant_time_compare(expected, sig) for sig in signatures):
        raise WebhookSignatureError("Signature mismatch")


async def verify_stripe_webhook(request: Request, secret: str) -> bytes:
    """Verify the request signature and return the raw body"""
    raw_body = await request.body()
    header = request.headers.get("stripe-signature", "")

    try:
        verify_stripe_signature(raw_body, header, secret)
    except WebhookSignatureError as e:
        logger.error(f"❌ Webhook signature verification failed: {e}")
        raise ValidationFailed("Invalid webhook signature", code="INVALID_SIGNATURE") from e

    logger.info("✅ Webhook signature verified")
    return raw_body
