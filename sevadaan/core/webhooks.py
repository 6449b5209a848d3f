# sevadaan/core/webhooks.py
"""
Signature checks for inbound webhooks. Every check returns the parsed
event or raises UnauthorizedError; missing secrets fail closed.
"""

import hashlib
import hmac
import json
from typing import Optional

import stripe
from loguru import logger

from sevadaan.core.config import Settings
from sevadaan.core.errors import BadRequestError, UnauthorizedError

LEGACY_MIN_SIGNATURE_LENGTH = 10


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def _parse_json(payload: bytes) -> dict:
    try:
        event = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise BadRequestError("Webhook body is not valid JSON")
    if not isinstance(event, dict):
        raise BadRequestError("Webhook body must be a JSON object")
    return event


# ------------------------------------------------------------
# Razorpay: hex HMAC-SHA256 of the raw body
# ------------------------------------------------------------
def verify_razorpay_event(settings: Settings, payload: bytes, signature: Optional[str]) -> dict:
    if not settings.RAZORPAY_WEBHOOK_SECRET:
        logger.error("RAZORPAY_WEBHOOK_SECRET not configured; rejecting webhook.")
        raise UnauthorizedError("Webhook verification is not configured")
    if not signature:
        raise UnauthorizedError("Missing webhook signature")

    expected = compute_hmac_sha256(settings.RAZORPAY_WEBHOOK_SECRET, payload)
    if not hmac.compare_digest(expected, signature):
        raise UnauthorizedError("Invalid webhook signature")

    return _parse_json(payload)


# ------------------------------------------------------------
# Stripe: delegated to the SDK
# ------------------------------------------------------------
def verify_stripe_event(settings: Settings, payload: bytes, signature: Optional[str]) -> dict:
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET not configured; rejecting webhook.")
        raise UnauthorizedError("Webhook verification is not configured")
    if not signature:
        raise UnauthorizedError("Missing webhook signature")

    try:
        event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError:
        raise BadRequestError("Invalid webhook payload")
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Invalid Stripe signature: {e}")
        raise UnauthorizedError("Invalid webhook signature")

    return event.to_dict() if hasattr(event, "to_dict") else dict(event)


# ------------------------------------------------------------
# Generic integration callbacks
# ------------------------------------------------------------
def verify_integration_event(settings: Settings, payload: bytes, signature: Optional[str]) -> dict:
    if not signature:
        raise UnauthorizedError("Missing webhook signature")

    if settings.INTEGRATION_SIGNATURE_MODE == "length":
        # Legacy placeholder: no cryptographic check at all
        logger.warning("Integration webhook accepted with length-only signature check.")
        if len(signature) <= LEGACY_MIN_SIGNATURE_LENGTH:
            raise UnauthorizedError("Invalid webhook signature")
        return _parse_json(payload)

    if not settings.INTEGRATION_WEBHOOK_SECRET:
        logger.error("INTEGRATION_WEBHOOK_SECRET not configured; rejecting webhook.")
        raise UnauthorizedError("Webhook verification is not configured")

    expected = compute_hmac_sha256(settings.INTEGRATION_WEBHOOK_SECRET, payload)
    provided = signature.removeprefix("sha256=")
    if not hmac.compare_digest(expected, provided):
        raise UnauthorizedError("Invalid webhook signature")

    return _parse_json(payload)
