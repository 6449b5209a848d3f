# sevadaan/services/emergency_service.py

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import ForbiddenError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.core.permissions import Role, check_permission
from sevadaan.models.emergency import EmergencyRequest
from sevadaan.models.enums import (
    EmergencyStatus,
    EmergencyType,
    NGOStatus,
    UrgencyLevel,
    VerificationStatus,
)
from sevadaan.models.ngo import NGO
from sevadaan.models.user import User
from sevadaan.schemas.emergency import EmergencyCreate, EmergencyResolution
from sevadaan.services.audit_service import record_audit
from sevadaan.services.ngo_service import get_ngo, is_super_admin


@dataclass
class EmergencyFilters:
    emergency_type: Optional[EmergencyType] = None
    urgency_level: Optional[UrgencyLevel] = None
    status: Optional[EmergencyStatus] = None
    state: Optional[str] = None
    city: Optional[str] = None
    verified: Optional[bool] = None
    assigned: Optional[bool] = None


# ===================================================================
# CREATE / READ
# ===================================================================
async def create_request(
    session: AsyncSession,
    payload: EmergencyCreate,
    requester: Optional[User] = None,
) -> EmergencyRequest:
    request = EmergencyRequest(**payload.model_dump(), user_id=requester.id if requester else None)
    request.refresh_priority()

    session.add(request)
    await session.commit()
    await session.refresh(request)
    return request


async def get_request(session: AsyncSession, request_id: uuid.UUID) -> EmergencyRequest:
    request = await session.get(EmergencyRequest, request_id)
    if not request:
        raise NotFoundError("Emergency request not found")
    return request


def can_view_details(user: User, request: EmergencyRequest) -> bool:
    if is_super_admin(user):
        return True
    if request.user_id and request.user_id == user.id:
        return True
    return bool(
        user.ngo_id
        and request.assigned_to_ngo == user.ngo_id
        and check_permission(user.role, "emergency", "read", user.permissions or [])
    )


async def get_visible_request(session: AsyncSession, user: User, request_id: uuid.UUID) -> EmergencyRequest:
    request = await get_request(session, request_id)
    if not can_view_details(user, request):
        raise NotFoundError("Emergency request not found")
    return request


async def list_requests(
    session: AsyncSession,
    viewer: User,
    filters: EmergencyFilters,
    params: PageParams,
):
    query = select(EmergencyRequest)

    # Scope: super admin sees everything, NGO staff their assignments, others their own requests
    if is_super_admin(viewer):
        pass
    elif viewer.role in (Role.NGO_ADMIN, Role.NGO_MANAGER) and viewer.ngo_id:
        query = query.where(EmergencyRequest.assigned_to_ngo == viewer.ngo_id)
    else:
        query = query.where(EmergencyRequest.user_id == viewer.id)

    if filters.emergency_type:
        query = query.where(EmergencyRequest.emergency_type == filters.emergency_type)
    if filters.urgency_level:
        query = query.where(EmergencyRequest.urgency_level == filters.urgency_level)
    if filters.status:
        query = query.where(EmergencyRequest.status == filters.status)
    if filters.state:
        query = query.where(EmergencyRequest.state.ilike(filters.state))
    if filters.city:
        query = query.where(EmergencyRequest.city.ilike(filters.city))
    if filters.verified is not None:
        if filters.verified:
            query = query.where(EmergencyRequest.verification_status == VerificationStatus.Verified)
        else:
            query = query.where(EmergencyRequest.verification_status != VerificationStatus.Verified)
    if filters.assigned is not None:
        if filters.assigned:
            query = query.where(EmergencyRequest.assigned_to_ngo.is_not(None))
        else:
            query = query.where(EmergencyRequest.assigned_to_ngo.is_(None))

    query = query.order_by(EmergencyRequest.priority.desc(), EmergencyRequest.created_at.desc())
    return await paginate(session, query, params)


# ===================================================================
# TRANSITIONS
# ===================================================================
async def assign_request(
    session: AsyncSession,
    actor: User,
    request_id: uuid.UUID,
    ngo_id: uuid.UUID,
) -> tuple[EmergencyRequest, NGO]:
    request = await get_request(session, request_id)
    ngo = await get_ngo(session, ngo_id)
    if ngo.status != NGOStatus.Verified:
        raise ForbiddenError("Emergencies can only be assigned to verified NGOs")

    request.assign_to_ngo(ngo.id, actor.id)

    session.add(request)
    record_audit(session, actor, "EMERGENCY_ASSIGNED", "emergency", request.id, details={"ngo_id": str(ngo.id)})
    await session.commit()
    await session.refresh(request)
    return request, ngo


def ensure_can_resolve(actor: User, request: EmergencyRequest) -> None:
    if is_super_admin(actor):
        return
    # Unassigned requests can only be closed out by a super admin
    if request.assigned_to_ngo is None or actor.ngo_id != request.assigned_to_ngo:
        raise ForbiddenError("Only the assigned NGO can resolve this request")
    if not check_permission(actor.role, "emergency", "respond", actor.permissions or []):
        raise ForbiddenError("Permission 'emergency:respond' required")


async def resolve_request(
    session: AsyncSession,
    actor: User,
    request_id: uuid.UUID,
    resolution: EmergencyResolution,
) -> EmergencyRequest:
    request = await get_request(session, request_id)
    ensure_can_resolve(actor, request)

    request.mark_resolved(resolution.model_dump())

    session.add(request)
    record_audit(session, actor, "EMERGENCY_RESOLVED", "emergency", request.id)
    await session.commit()
    await session.refresh(request)
    return request


async def verify_request(
    session: AsyncSession,
    actor: User,
    request_id: uuid.UUID,
    notes: Optional[str],
) -> EmergencyRequest:
    request = await get_request(session, request_id)
    request.verify(actor.id, notes)

    session.add(request)
    record_audit(session, actor, "EMERGENCY_VERIFIED", "emergency", request.id, remarks=notes)
    await session.commit()
    await session.refresh(request)
    return request


async def reject_request(
    session: AsyncSession,
    actor: User,
    request_id: uuid.UUID,
    notes: str,
) -> EmergencyRequest:
    request = await get_request(session, request_id)
    request.reject(actor.id, notes)

    session.add(request)
    record_audit(session, actor, "EMERGENCY_REJECTED", "emergency", request.id, remarks=notes)
    await session.commit()
    await session.refresh(request)
    return request


async def close_request(session: AsyncSession, actor: User, request_id: uuid.UUID) -> EmergencyRequest:
    request = await get_request(session, request_id)
    ensure_can_resolve(actor, request)
    request.close()

    session.add(request)
    await session.commit()
    await session.refresh(request)
    return request


# ===================================================================
# STATS
# ===================================================================
async def stats_for_ngo(session: AsyncSession, ngo_id: uuid.UUID) -> dict:
    result = await session.execute(
        select(EmergencyRequest).where(EmergencyRequest.assigned_to_ngo == ngo_id)
    )
    requests = result.scalars().all()

    resolved = [r for r in requests if r.status in (EmergencyStatus.Resolved, EmergencyStatus.Closed)]
    hours = [h for h in (r.resolution_hours() for r in resolved) if h is not None]

    return {
        "ngo_id": ngo_id,
        "totalAssigned": len(requests),
        "resolved": len(resolved),
        "inProgress": sum(1 for r in requests if r.status == EmergencyStatus.InProgress),
        "pending": sum(1 for r in requests if r.status == EmergencyStatus.Pending),
        "totalCostIncurred": round(
            sum(float((r.resolution or {}).get("cost_incurred") or 0) for r in resolved), 2
        ),
        "averageResolutionTime": round(sum(hours) / len(hours), 2) if hours else 0,
    }
