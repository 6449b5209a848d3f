# sevadaan/api/endpoints/webhooks.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_db_session
from sevadaan.core.config import Settings
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.core.webhooks import verify_integration_event, verify_razorpay_event, verify_stripe_event
from sevadaan.models.donation import Donation
from sevadaan.models.user import User
from sevadaan.services import donation_service
from sevadaan.services.audit_service import record_audit
from sevadaan.services.email_service import send_donation_receipt_email
from sevadaan.services.ngo_service import get_ngo

router = APIRouter(prefix="/api/v1/webhooks", tags=["Webhooks"])


async def _after_payment(
    session: AsyncSession,
    settings: Settings,
    background_tasks: BackgroundTasks,
    donation: Optional[Donation],
) -> None:
    if not donation:
        return

    ngo = await get_ngo(session, donation.ngo_id)
    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        donation.ngo_id,
        EventType.DONATION_RECEIVED,
        {
            "donation_id": donation.id,
            "amount": donation.amount,
            "currency": donation.currency,
            "program_id": donation.program_id,
        },
    )

    donor = await session.get(User, donation.donor_id) if donation.donor_id else None
    if donor:
        background_tasks.add_task(send_donation_receipt_email, settings, {
            "email": donor.email,
            "name": donor.name,
            "ngo_name": ngo.name,
            "amount": donation.amount,
            "currency": donation.currency.value,
            "receipt_number": donation.receipt_number,
        })


# -------------------------------------------------------------------
# RAZORPAY
# -------------------------------------------------------------------
@router.post("/payments/razorpay")
async def razorpay_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_razorpay_signature: Optional[str] = Header(None, alias="X-Razorpay-Signature"),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    payload = await request.body()
    event = verify_razorpay_event(settings, payload, x_razorpay_signature)

    event_type = event.get("event")
    payment = ((event.get("payload") or {}).get("payment") or {}).get("entity") or {}
    order_id, payment_id = payment.get("order_id"), payment.get("id")
    logger.info(f"Razorpay webhook: {event_type} (order {order_id})")

    if event_type == "payment.captured":
        donation = await donation_service.complete_payment(session, order_id, payment_id)
        await _after_payment(session, settings, background_tasks, donation)
    elif event_type == "payment.failed":
        await donation_service.fail_payment(session, order_id, payment_id)
    else:
        logger.info(f"Ignoring Razorpay event {event_type}")

    return ok(message="Webhook processed")


# -------------------------------------------------------------------
# STRIPE
# -------------------------------------------------------------------
@router.post("/payments/stripe")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    payload = await request.body()
    event = verify_stripe_event(settings, payload, stripe_signature)

    event_type = event.get("type")
    intent = (event.get("data") or {}).get("object") or {}
    intent_id = intent.get("id")
    logger.info(f"Stripe webhook: {event_type} (intent {intent_id})")

    if event_type == "payment_intent.succeeded":
        donation = await donation_service.complete_payment(session, intent_id, intent.get("latest_charge"))
        await _after_payment(session, settings, background_tasks, donation)
    elif event_type == "payment_intent.payment_failed":
        await donation_service.fail_payment(session, intent_id, intent.get("latest_charge"))
    else:
        logger.info(f"Ignoring Stripe event {event_type}")

    return ok(message="Webhook processed")


# -------------------------------------------------------------------
# THIRD-PARTY INTEGRATIONS
# -------------------------------------------------------------------
@router.post("/integrations/{source}")
async def integration_webhook(
    source: str,
    request: Request,
    x_webhook_signature: Optional[str] = Header(None, alias="X-Webhook-Signature"),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
):
    payload = await request.body()
    event = verify_integration_event(settings, payload, x_webhook_signature)

    entry = record_audit(
        session, None, "INTEGRATION_WEBHOOK", "integration", source,
        details={"event": event.get("event") or event.get("type"), "keys": sorted(event)},
    )
    await session.commit()

    logger.info(f"Integration webhook processed for {source}")
    return ok({"source": source, "received_at": entry.timestamp}, "Webhook processed successfully")
