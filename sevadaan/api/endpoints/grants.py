# sevadaan/api/endpoints/grants.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role
from sevadaan.core.rbac import AllowRoles, require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.enums import GrantStatus
from sevadaan.models.user import User
from sevadaan.schemas.grant import DisbursementRequest, GrantCreate, GrantDecision
from sevadaan.services import grant_service

router = APIRouter(prefix="/api/v1/grants", tags=["Grants"])


def _announce(background_tasks: BackgroundTasks, grant) -> None:
    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        grant.ngo_id,
        EventType.GRANT_UPDATED,
        {"grant_id": grant.id, "status": grant.status, "approved_amount": grant.approved_amount},
    )


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_grant(
    payload: GrantCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "create")),
):
    grant = await grant_service.create_grant(session, current_user, payload)
    return ok(grant, "Grant application drafted")


@router.get("/")
async def list_grants(
    grant_status: Optional[GrantStatus] = Query(None, alias="status"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "read")),
):
    grants, pagination = await grant_service.list_grants(session, current_user, params, grant_status)
    return ok(grants, pagination=pagination)


@router.get("/{grant_id}")
async def get_grant(
    grant_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "read")),
):
    grant = await grant_service.get_grant(session, current_user, grant_id)
    return ok(grant)


@router.post("/{grant_id}/submit")
async def submit_grant(
    grant_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "apply")),
):
    grant = await grant_service.submit_grant(session, current_user, grant_id)
    background_tasks.add_task(
        connection_manager.emit_to_role, Role.SUPER_ADMIN, EventType.GRANT_UPDATED,
        {"grant_id": grant.id, "status": grant.status},
    )
    return ok(grant, "Grant submitted for review")


@router.post("/{grant_id}/review")
async def start_review(
    grant_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(AllowRoles(Role.SUPER_ADMIN)),
):
    grant = await grant_service.start_review(session, current_user, grant_id)
    _announce(background_tasks, grant)
    return ok(grant, "Grant under review")


@router.post("/{grant_id}/decision")
async def decide_grant(
    grant_id: uuid.UUID,
    payload: GrantDecision,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "approve")),
):
    grant = await grant_service.decide_grant(session, current_user, grant_id, payload)
    _announce(background_tasks, grant)
    return ok(grant, f"Grant {grant.status.value}")


@router.post("/{grant_id}/disburse")
async def disburse_grant(
    grant_id: uuid.UUID,
    payload: DisbursementRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("grants", "disburse")),
):
    grant = await grant_service.disburse_grant(session, current_user, grant_id, payload.amount)
    _announce(background_tasks, grant)
    return ok(grant, "Disbursement recorded")
