# sevadaan/api/endpoints/donations.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_db_session
from sevadaan.core.config import Settings
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import connection_manager, ngo_room
from sevadaan.core.responses import ok
from sevadaan.models.enums import PaymentStatus
from sevadaan.models.user import User
from sevadaan.schemas.donation import DonationCreate
from sevadaan.services import donation_service

router = APIRouter(prefix="/api/v1/donations", tags=["Donations"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_donation(
    payload: DonationCreate,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("donations", "create")),
):
    donation = await donation_service.create_donation(session, settings, current_user, payload)
    return ok(
        {
            "donation": donation,
            "payment_provider": donation.payment_provider,
            "order_id": donation.gateway_order_id,
            "key_id": settings.RAZORPAY_KEY_ID if donation.payment_provider == "razorpay" else None,
        },
        "Donation initiated. Complete the payment to confirm.",
    )


@router.get("/mine")
async def my_donations(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("donations", "read")),
):
    donations, pagination = await donation_service.list_my_donations(session, current_user, params)
    return ok(donations, pagination=pagination)


@router.get("/ngo")
async def ngo_donations(
    ngo_id: Optional[uuid.UUID] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("donations", "read")),
):
    donations, pagination = await donation_service.list_ngo_donations(
        session, current_user, params, ngo_id, payment_status
    )
    return ok([donation_service.public_view(d, current_user) for d in donations], pagination=pagination)


@router.post("/{donation_id}/refund")
async def refund_donation(
    donation_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("donations", "refund")),
):
    donation = await donation_service.refund_donation(session, current_user, donation_id)
    background_tasks.add_task(connection_manager.emit_dashboard_refresh, ngo_room(donation.ngo_id), "donations")
    return ok(donation, "Donation refunded")
