import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from sevadaan.core.permissions import Role
from sevadaan.core.webhooks import compute_hmac_sha256
from sevadaan.models.donation import Donation
from sevadaan.models.enums import PaymentStatus
from sevadaan.models.ngo import NGO


def _body(data: dict) -> bytes:
    return json.dumps(data).encode("utf-8")


# ------------------------------------------------------------------
# Integration callbacks
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_integration_webhook_valid_signature(client, override_settings):
    override_settings(INTEGRATION_WEBHOOK_SECRET="integration-secret")
    body = _body({"event": "sync.completed", "records": 3})

    res = await client.post(
        "/api/v1/webhooks/integrations/crm",
        content=body,
        headers={
            "Content-Type": "application/json",
            "X-Webhook-Signature": compute_hmac_sha256("integration-secret", body),
        },
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["source"] == "crm"
    assert data["received_at"]


@pytest.mark.asyncio
async def test_integration_webhook_invalid_signature(client, override_settings):
    override_settings(INTEGRATION_WEBHOOK_SECRET="integration-secret")
    body = _body({"event": "sync.completed"})

    res = await client.post(
        "/api/v1/webhooks/integrations/crm",
        content=body,
        headers={"X-Webhook-Signature": compute_hmac_sha256("wrong-secret", body)},
    )
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_integration_webhook_missing_signature(client, override_settings):
    override_settings(INTEGRATION_WEBHOOK_SECRET="integration-secret")
    res = await client.post("/api/v1/webhooks/integrations/crm", content=_body({"event": "x"}))
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_integration_webhook_without_secret_fails_closed(client, override_settings):
    override_settings(INTEGRATION_WEBHOOK_SECRET=None, INTEGRATION_SIGNATURE_MODE="hmac")
    res = await client.post(
        "/api/v1/webhooks/integrations/crm",
        content=_body({"event": "x"}),
        headers={"X-Webhook-Signature": "sha256=" + "0" * 64},
    )
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_legacy_length_mode(client, override_settings):
    override_settings(INTEGRATION_SIGNATURE_MODE="length")
    body = _body({"event": "ping"})

    short = await client.post(
        "/api/v1/webhooks/integrations/legacy", content=body, headers={"X-Webhook-Signature": "short"}
    )
    assert short.status_code == 401

    long_enough = await client.post(
        "/api/v1/webhooks/integrations/legacy", content=body, headers={"X-Webhook-Signature": "x" * 20}
    )
    assert long_enough.status_code == 200


@pytest.mark.asyncio
async def test_integration_webhook_rejects_non_object_body(client, override_settings):
    override_settings(INTEGRATION_WEBHOOK_SECRET="integration-secret")
    body = b"[1, 2, 3]"
    res = await client.post(
        "/api/v1/webhooks/integrations/crm",
        content=body,
        headers={"X-Webhook-Signature": compute_hmac_sha256("integration-secret", body)},
    )
    assert res.status_code == 400


# ------------------------------------------------------------------
# Payment gateways
# ------------------------------------------------------------------
@pytest.mark.asyncio
async def test_razorpay_without_secret_fails_closed(client, override_settings):
    override_settings(RAZORPAY_WEBHOOK_SECRET=None)
    res = await client.post(
        "/api/v1/webhooks/payments/razorpay",
        content=_body({"event": "payment.captured"}),
        headers={"X-Razorpay-Signature": "anything"},
    )
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_stripe_without_secret_fails_closed(client, override_settings):
    override_settings(STRIPE_WEBHOOK_SECRET=None)
    res = await client.post(
        "/api/v1/webhooks/payments/stripe",
        content=_body({"type": "payment_intent.succeeded"}),
        headers={"Stripe-Signature": "t=1,v1=abc"},
    )
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_razorpay_capture_completes_donation(
    client, db_session, make_user, make_ngo, auth_headers, override_settings
):
    override_settings(RAZORPAY_WEBHOOK_SECRET="razorpay-secret")
    donor = await make_user(Role.DONOR)
    ngo = await make_ngo()

    with patch(
        "sevadaan.services.donation_service.create_payment_order",
        new=AsyncMock(return_value="order_test_123"),
    ):
        created = await client.post(
            "/api/v1/donations/",
            json={"ngo_id": str(ngo.id), "amount": 500},
            headers=auth_headers(donor),
        )
    assert created.status_code == 201
    assert created.json()["data"]["order_id"] == "order_test_123"
    assert created.json()["data"]["donation"]["payment_status"] == "processing"

    body = _body({
        "event": "payment.captured",
        "payload": {"payment": {"entity": {"id": "pay_test_1", "order_id": "order_test_123"}}},
    })
    headers = {"X-Razorpay-Signature": compute_hmac_sha256("razorpay-secret", body)}

    res = await client.post("/api/v1/webhooks/payments/razorpay", content=body, headers=headers)
    assert res.status_code == 200

    # gateways retry; a second delivery must not count the money twice
    again = await client.post("/api/v1/webhooks/payments/razorpay", content=body, headers=headers)
    assert again.status_code == 200

    donation = await db_session.get(Donation, uuid.UUID(created.json()["data"]["donation"]["id"]), populate_existing=True)
    assert donation.payment_status == PaymentStatus.Completed
    assert donation.gateway_payment_id == "pay_test_1"
    assert donation.receipt_number.startswith("RCPT-")

    ngo = await db_session.get(NGO, ngo.id, populate_existing=True)
    assert ngo.total_donations_amount == 500


@pytest.mark.asyncio
async def test_razorpay_tampered_body(client, override_settings):
    override_settings(RAZORPAY_WEBHOOK_SECRET="razorpay-secret")
    signed = _body({"event": "payment.captured", "amount": 100})
    tampered = _body({"event": "payment.captured", "amount": 100000})

    res = await client.post(
        "/api/v1/webhooks/payments/razorpay",
        content=tampered,
        headers={"X-Razorpay-Signature": compute_hmac_sha256("razorpay-secret", signed)},
    )
    assert res.status_code == 401
