# sevadaan/services/payment_service.py

from typing import Optional

import httpx
import stripe
from loguru import logger

from sevadaan.core.config import Settings
from sevadaan.core.errors import AppError
from sevadaan.models.donation import Donation

RAZORPAY_ORDERS_URL = "https://api.razorpay.com/v1/orders"


class PaymentGatewayError(AppError):
    status_code = 502


def _minor_units(amount: float) -> int:
    # Both gateways take paise / cents
    return int(round(amount * 100))


async def _create_razorpay_order(settings: Settings, donation: Donation) -> Optional[str]:
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        logger.warning("Razorpay not configured - skipping order creation")
        return None

    payload = {
        "amount": _minor_units(donation.amount),
        "currency": donation.currency.value,
        "receipt": donation.id.hex[:40],
        "notes": {
            "donation_id": str(donation.id),
            "ngo_id": str(donation.ngo_id),
        },
    }
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                RAZORPAY_ORDERS_URL,
                json=payload,
                auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            )
            response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Razorpay order creation failed for donation {donation.id}: {e}")
        raise PaymentGatewayError("Failed to create payment order")

    order_id = response.json()["id"]
    logger.info(f"Created Razorpay order {order_id} for donation {donation.id}")
    return order_id


async def _create_stripe_intent(settings: Settings, donation: Donation) -> Optional[str]:
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("Stripe not configured - skipping payment intent creation")
        return None

    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        intent = await stripe.PaymentIntent.create_async(
            amount=_minor_units(donation.amount),
            currency=donation.currency.value.lower(),
            metadata={"donation_id": str(donation.id), "ngo_id": str(donation.ngo_id)},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe payment intent failed for donation {donation.id}: {e}")
        raise PaymentGatewayError("Failed to create payment order")

    logger.info(f"Created Stripe payment intent {intent.id} for donation {donation.id}")
    return intent.id


async def create_payment_order(settings: Settings, donation: Donation) -> Optional[str]:
    """
    Opens an order with the configured gateway and returns its id.
    None means the gateway is not configured; the donation stays pending.
    """
    if donation.payment_provider == "stripe":
        return await _create_stripe_intent(settings, donation)
    return await _create_razorpay_order(settings, donation)
