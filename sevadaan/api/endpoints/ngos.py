# sevadaan/api/endpoints/ngos.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session, get_optional_user
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role
from sevadaan.core.rbac import AllowRoles, require_permission
from sevadaan.core.realtime import connection_manager, role_room
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.schemas.ngo import NGOContentUpdate, NGOCreate, NGORead, NGOUpdate, SuspendRequest
from sevadaan.services import ngo_service

router = APIRouter(prefix="/api/v1/ngos", tags=["NGOs"])


# -------------------------------------------------------------------
# REGISTER AN NGO (the calling NGO_ADMIN becomes its admin)
# -------------------------------------------------------------------
@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_ngo(
    payload: NGOCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("ngos", "create")),
):
    ngo = await ngo_service.create_ngo(session, current_user, payload)
    background_tasks.add_task(connection_manager.emit_dashboard_refresh, role_room(Role.SUPER_ADMIN), "ngos")
    return ok(NGORead.model_validate(ngo), "NGO registered. Upload KYC documents to get verified.")


# -------------------------------------------------------------------
# PUBLIC DIRECTORY
# -------------------------------------------------------------------
@router.get("/")
async def list_ngos(
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
):
    ngos, pagination = await ngo_service.list_public_ngos(session, params, city, state, search)
    return ok([NGORead.model_validate(n) for n in ngos], pagination=pagination)


@router.get("/slug/{slug}")
async def get_ngo_by_slug(slug: str, session: AsyncSession = Depends(get_db_session)):
    ngo = await ngo_service.get_ngo_by_slug(session, slug)
    return ok(NGORead.model_validate(ngo))


@router.get("/{ngo_id}")
async def get_ngo(
    ngo_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    viewer: Optional[User] = Depends(get_optional_user),
):
    ngo = await ngo_service.get_visible_ngo(session, ngo_id, viewer)
    return ok(NGORead.model_validate(ngo))


# -------------------------------------------------------------------
# EDITS
# -------------------------------------------------------------------
@router.put("/{ngo_id}")
async def update_ngo(
    ngo_id: uuid.UUID,
    payload: NGOUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("ngos", "update")),
):
    ngo = await ngo_service.update_ngo(session, current_user, ngo_id, payload)
    return ok(NGORead.model_validate(ngo), "NGO updated")


@router.put("/{ngo_id}/content")
async def update_content(
    ngo_id: uuid.UUID,
    payload: NGOContentUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("ngo_settings", "update")),
):
    ngo = await ngo_service.update_content(session, current_user, ngo_id, payload)
    return ok(NGORead.model_validate(ngo), "Homepage content updated")


@router.post("/{ngo_id}/suspend")
async def suspend_ngo(
    ngo_id: uuid.UUID,
    payload: SuspendRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(AllowRoles(Role.SUPER_ADMIN)),
):
    ngo = await ngo_service.suspend_ngo(session, current_user, ngo_id, payload.reason)
    background_tasks.add_task(connection_manager.emit_dashboard_refresh, role_room(Role.SUPER_ADMIN), "ngos")
    return ok(NGORead.model_validate(ngo), "NGO suspended")
