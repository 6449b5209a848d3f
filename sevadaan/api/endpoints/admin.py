# sevadaan/api/endpoints/admin.py

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_current_user, get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role, get_role_level
from sevadaan.core.rbac import require_min_level
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.schemas.user import UserCreate, UserRead, UserUpdate
from sevadaan.services import auth_service, user_service
from sevadaan.services.audit_service import record_audit

# Platform administration is gated for the whole router
router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin"],
    dependencies=[Depends(require_min_level(get_role_level(Role.SUPER_ADMIN)))],
)


# -------------------------------------------------------------------
# USERS
# -------------------------------------------------------------------
@router.get("/users")
async def list_users(
    role: Optional[Role] = Query(None),
    ngo_id: Optional[uuid.UUID] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
):
    users, pagination = await user_service.list_users(session, params, role, ngo_id, is_active, search)
    return ok([UserRead.model_validate(u) for u in users], pagination=pagination)


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    user = await auth_service.create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        phone=payload.phone,
        ngo_id=payload.ngo_id,
    )
    record_audit(session, current_user, "USER_CREATED", "user", user.id, details={"role": user.role})
    await session.commit()
    return ok(UserRead.model_validate(user), "User created")


@router.get("/users/{user_id}")
async def get_user(user_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    user = await user_service.get_user(session, user_id)
    return ok(UserRead.model_validate(user))


@router.patch("/users/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    user = await user_service.update_user(session, current_user, user_id, payload)
    return ok(UserRead.model_validate(user), "User updated")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    user = await user_service.deactivate_user(session, current_user, user_id)
    return ok(UserRead.model_validate(user), "User deactivated")


# -------------------------------------------------------------------
# AUDIT TRAIL
# -------------------------------------------------------------------
@router.get("/audit-logs")
async def list_audit_logs(
    action: Optional[str] = Query(None),
    actor_role: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
):
    logs, pagination = await user_service.list_audit_logs(session, params, action, actor_role, resource_type)
    return ok(logs, pagination=pagination)
