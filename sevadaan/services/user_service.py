# sevadaan/services/user_service.py

import uuid
from typing import Optional

from sqlalchemy import or_
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.core.permissions import Role
from sevadaan.models.audit import AuditLog
from sevadaan.models.ngo import NGO
from sevadaan.models.user import User
from sevadaan.schemas.user import ProfileUpdate, UserUpdate
from sevadaan.services.audit_service import record_audit


# -------------------------------------------------------------------
# ADMIN: USERS
# -------------------------------------------------------------------
async def list_users(
    session: AsyncSession,
    params: PageParams,
    role: Optional[Role] = None,
    ngo_id: Optional[uuid.UUID] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
):
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if ngo_id:
        query = query.where(User.ngo_id == ngo_id)
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if search:
        term = f"%{search}%"
        query = query.where(or_(User.name.ilike(term), User.email.ilike(term)))
    query = query.order_by(User.created_at.desc())
    return await paginate(session, query, params)


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def update_user(session: AsyncSession, actor: User, user_id: uuid.UUID, payload: UserUpdate) -> User:
    user = await get_user(session, user_id)
    changes = payload.model_dump(exclude_unset=True)

    if user.id == actor.id and (changes.get("is_active") is False or changes.get("role", actor.role) != actor.role):
        raise BadRequestError("You cannot demote or deactivate your own account")

    if changes.get("ngo_id") and not await session.get(NGO, changes["ngo_id"]):
        raise NotFoundError("NGO not found")

    role = changes.get("role", user.role)
    if role == Role.NGO_MANAGER and not changes.get("ngo_id", user.ngo_id):
        raise BadRequestError("NGO managers must belong to an NGO")

    for field, value in changes.items():
        setattr(user, field, value)
    if "role" in changes and role != Role.NGO_MANAGER:
        # Delegations only make sense for managers
        user.permissions = []
    if changes.get("is_active") is False:
        user.refresh_token = None

    session.add(user)
    record_audit(session, actor, "USER_UPDATED", "user", user.id, details=changes)
    await session.commit()
    await session.refresh(user)
    return user


async def deactivate_user(session: AsyncSession, actor: User, user_id: uuid.UUID) -> User:
    user = await get_user(session, user_id)
    if user.id == actor.id:
        raise BadRequestError("You cannot delete your own account")

    user.is_active = False
    user.refresh_token = None

    session.add(user)
    record_audit(session, actor, "USER_DEACTIVATED", "user", user.id)
    await session.commit()
    await session.refresh(user)
    return user


# -------------------------------------------------------------------
# SELF SERVICE
# -------------------------------------------------------------------
async def update_profile(session: AsyncSession, user: User, payload: ProfileUpdate) -> User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


# -------------------------------------------------------------------
# AUDIT TRAIL
# -------------------------------------------------------------------
async def list_audit_logs(
    session: AsyncSession,
    params: PageParams,
    action: Optional[str] = None,
    actor_role: Optional[str] = None,
    resource_type: Optional[str] = None,
):
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)
    if actor_role:
        query = query.where(AuditLog.actor_role == actor_role)
    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)
    query = query.order_by(AuditLog.timestamp.desc())
    return await paginate(session, query, params)
