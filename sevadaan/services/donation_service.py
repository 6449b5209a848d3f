# sevadaan/services/donation_service.py

import uuid
from typing import Optional

from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.config import Settings
from sevadaan.core.errors import BadRequestError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.donation import Donation
from sevadaan.models.enums import NGOStatus, PaymentStatus, ProgramStatus
from sevadaan.models.ngo import NGO
from sevadaan.models.program import Program
from sevadaan.models.user import User
from sevadaan.schemas.donation import DonationCreate
from sevadaan.services.audit_service import record_audit
from sevadaan.services.ngo_service import ensure_ngo_access, get_ngo, is_super_admin, resolve_target_ngo
from sevadaan.services.payment_service import create_payment_order


# ===================================================================
# CREATE
# ===================================================================
async def create_donation(
    session: AsyncSession,
    settings: Settings,
    donor: User,
    payload: DonationCreate,
) -> Donation:
    ngo = await get_ngo(session, payload.ngo_id)
    if ngo.status != NGOStatus.Verified:
        raise BadRequestError("Donations are only accepted by verified NGOs")

    if payload.program_id:
        program = await session.get(Program, payload.program_id)
        if not program or program.ngo_id != ngo.id:
            raise NotFoundError("Program not found")
        if program.status != ProgramStatus.Active:
            raise BadRequestError("Program is not accepting donations")

    donation = Donation(
        **payload.model_dump(),
        donor_id=donor.id,
        payment_provider=settings.PAYMENT_PROVIDER,
    )
    donation.gateway_order_id = await create_payment_order(settings, donation)
    if donation.gateway_order_id:
        donation.payment_status = PaymentStatus.Processing

    session.add(donation)
    await session.commit()
    await session.refresh(donation)
    return donation


# ===================================================================
# READ
# ===================================================================
async def get_donation(session: AsyncSession, donation_id: uuid.UUID) -> Donation:
    donation = await session.get(Donation, donation_id)
    if not donation:
        raise NotFoundError("Donation not found")
    return donation


async def list_my_donations(session: AsyncSession, donor: User, params: PageParams):
    query = select(Donation).where(Donation.donor_id == donor.id).order_by(Donation.created_at.desc())
    return await paginate(session, query, params)


async def list_ngo_donations(
    session: AsyncSession,
    actor: User,
    params: PageParams,
    ngo_id: Optional[uuid.UUID] = None,
    status: Optional[PaymentStatus] = None,
):
    target = resolve_target_ngo(actor, ngo_id)
    query = select(Donation).where(Donation.ngo_id == target)
    if status:
        query = query.where(Donation.payment_status == status)
    query = query.order_by(Donation.created_at.desc())
    return await paginate(session, query, params)


def public_view(donation: Donation, viewer: Optional[User]) -> dict:
    """Anonymous donations hide the donor from everyone except the donor and super admins."""
    data = donation.model_dump()
    if donation.is_anonymous and not (viewer and (is_super_admin(viewer) or viewer.id == donation.donor_id)):
        data["donor_id"] = None
    return data


# ===================================================================
# GATEWAY CALLBACKS
# ===================================================================
async def _apply_totals(session: AsyncSession, donation: Donation, sign: int) -> NGO:
    ngo = await get_ngo(session, donation.ngo_id)
    ngo.total_donations_amount = max(0.0, (ngo.total_donations_amount or 0.0) + sign * donation.amount)
    session.add(ngo)

    if donation.program_id:
        program = await session.get(Program, donation.program_id)
        if program:
            program.raised_amount = max(0.0, (program.raised_amount or 0.0) + sign * donation.amount)
            session.add(program)
    return ngo


async def find_by_gateway_order(session: AsyncSession, order_id: Optional[str]) -> Optional[Donation]:
    if not order_id:
        return None
    result = await session.execute(select(Donation).where(Donation.gateway_order_id == order_id))
    return result.scalars().first()


async def complete_payment(
    session: AsyncSession,
    order_id: Optional[str],
    payment_id: Optional[str],
) -> Optional[Donation]:
    """
    Marks the donation behind a gateway order as paid. Returns None for
    unknown orders and for duplicate deliveries so the caller can ack them.
    """
    donation = await find_by_gateway_order(session, order_id)
    if not donation:
        logger.warning(f"Payment callback for unknown order {order_id}")
        return None

    if not donation.mark_completed(payment_id):
        logger.info(f"Duplicate payment callback for donation {donation.id}")
        return None

    await _apply_totals(session, donation, 1)
    session.add(donation)
    await session.commit()
    await session.refresh(donation)

    logger.info(f"Donation {donation.id} completed ({donation.receipt_number})")
    return donation


async def fail_payment(
    session: AsyncSession,
    order_id: Optional[str],
    payment_id: Optional[str],
) -> Optional[Donation]:
    donation = await find_by_gateway_order(session, order_id)
    if not donation:
        logger.warning(f"Failure callback for unknown order {order_id}")
        return None
    if donation.payment_status == PaymentStatus.Failed:
        return None

    donation.mark_failed(payment_id)
    session.add(donation)
    await session.commit()
    await session.refresh(donation)
    return donation


# ===================================================================
# REFUND
# ===================================================================
async def refund_donation(session: AsyncSession, actor: User, donation_id: uuid.UUID) -> Donation:
    donation = await get_donation(session, donation_id)
    ensure_ngo_access(actor, donation.ngo_id)

    donation.refund()
    await _apply_totals(session, donation, -1)

    session.add(donation)
    record_audit(session, actor, "DONATION_REFUNDED", "donation", donation.id, details={"amount": donation.amount})
    await session.commit()
    await session.refresh(donation)
    return donation
