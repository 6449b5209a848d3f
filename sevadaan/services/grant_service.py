# sevadaan/services/grant_service.py

import uuid
from typing import Optional

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.enums import GrantStatus
from sevadaan.models.grant import Grant
from sevadaan.models.user import User
from sevadaan.schemas.grant import GrantCreate, GrantDecision
from sevadaan.services.audit_service import record_audit
from sevadaan.services.ngo_service import ensure_ngo_access, is_super_admin, require_user_ngo


async def get_grant(session: AsyncSession, actor: User, grant_id: uuid.UUID) -> Grant:
    grant = await session.get(Grant, grant_id)
    if not grant or not (is_super_admin(actor) or actor.ngo_id == grant.ngo_id):
        raise NotFoundError("Grant not found")
    return grant


async def create_grant(session: AsyncSession, actor: User, payload: GrantCreate) -> Grant:
    grant = Grant(**payload.model_dump(), ngo_id=require_user_ngo(actor), created_by=actor.id)
    session.add(grant)
    await session.commit()
    await session.refresh(grant)
    return grant


async def list_grants(
    session: AsyncSession,
    actor: User,
    params: PageParams,
    status: Optional[GrantStatus] = None,
):
    query = select(Grant)
    if not is_super_admin(actor):
        query = query.where(Grant.ngo_id == require_user_ngo(actor))
    if status:
        query = query.where(Grant.status == status)
    query = query.order_by(Grant.created_at.desc())
    return await paginate(session, query, params)


async def submit_grant(session: AsyncSession, actor: User, grant_id: uuid.UUID) -> Grant:
    grant = await get_grant(session, actor, grant_id)
    ensure_ngo_access(actor, grant.ngo_id)
    grant.submit()

    session.add(grant)
    await session.commit()
    await session.refresh(grant)
    return grant


# ---------------------------------------------------------
# PLATFORM REVIEW (super admin)
# ---------------------------------------------------------
async def start_review(session: AsyncSession, actor: User, grant_id: uuid.UUID) -> Grant:
    grant = await get_grant(session, actor, grant_id)
    grant.start_review(actor.id)

    session.add(grant)
    record_audit(session, actor, "GRANT_REVIEW_STARTED", "grant", grant.id)
    await session.commit()
    await session.refresh(grant)
    return grant


async def decide_grant(session: AsyncSession, actor: User, grant_id: uuid.UUID, decision: GrantDecision) -> Grant:
    grant = await get_grant(session, actor, grant_id)
    grant.decide(actor.id, decision.approve, decision.approved_amount, decision.notes)

    session.add(grant)
    record_audit(
        session, actor, f"GRANT_{grant.status.value.upper()}", "grant", grant.id,
        remarks=decision.notes, details={"approved_amount": grant.approved_amount},
    )
    await session.commit()
    await session.refresh(grant)
    return grant


async def disburse_grant(session: AsyncSession, actor: User, grant_id: uuid.UUID, amount: float) -> Grant:
    grant = await get_grant(session, actor, grant_id)
    grant.disburse(amount)

    session.add(grant)
    record_audit(session, actor, "GRANT_DISBURSED", "grant", grant.id, details={"amount": amount})
    await session.commit()
    await session.refresh(grant)
    return grant
