# sevadaan/services/manager_service.py

import uuid
from typing import Iterable, List

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, ForbiddenError, NotFoundError
from sevadaan.core.permissions import (
    CRITICAL_PERMISSIONS,
    Role,
    can_delegate_to_role,
    check_permission,
    split_permission,
)
from sevadaan.models.user import User
from sevadaan.schemas.manager import ManagerCreate, ManagerUpdate
from sevadaan.services.audit_service import record_audit
from sevadaan.services.auth_service import create_user
from sevadaan.services.ngo_service import require_user_ngo


# ===================================================================
# DELEGATION RULES
# ===================================================================
def validate_delegation(delegator: User, target_role: Role, requested: Iterable[str]) -> List[str]:
    """
    Returns the cleaned permission list, or raises when the delegator may
    not hand out one of the entries. Delegated permissions must be a
    subset of what the delegator itself holds, excluding the critical set.
    """
    if not can_delegate_to_role(delegator.role, target_role):
        raise ForbiddenError(f"Role '{delegator.role.value}' cannot delegate to '{target_role.value}'")

    cleaned: List[str] = []
    for permission in requested:
        parts = split_permission(permission)
        if parts is None:
            raise BadRequestError(f"Invalid permission '{permission}'. Expected 'module:action'")
        if permission in CRITICAL_PERMISSIONS:
            raise ForbiddenError(f"Permission '{permission}' cannot be delegated")
        if not check_permission(delegator.role, *parts, delegator.permissions or []):
            raise ForbiddenError(f"You cannot delegate '{permission}' because you do not hold it")
        if permission not in cleaned:
            cleaned.append(permission)
    return cleaned


# ===================================================================
# CRUD
# ===================================================================
async def list_managers(session: AsyncSession, admin: User) -> List[User]:
    ngo_id = require_user_ngo(admin)
    result = await session.execute(
        select(User)
        .where(
            (User.ngo_id == ngo_id)
            & (User.role == Role.NGO_MANAGER)
            & (User.is_active.is_(True))
        )
        .order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


async def get_manager(session: AsyncSession, admin: User, manager_id: uuid.UUID) -> User:
    ngo_id = require_user_ngo(admin)
    manager = await session.get(User, manager_id)
    if not manager or manager.role != Role.NGO_MANAGER or manager.ngo_id != ngo_id:
        raise NotFoundError("Manager not found")
    return manager


async def add_manager(session: AsyncSession, admin: User, payload: ManagerCreate) -> User:
    ngo_id = require_user_ngo(admin)
    permissions = validate_delegation(admin, Role.NGO_MANAGER, payload.permissions)

    manager = await create_user(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=Role.NGO_MANAGER,
        phone=payload.phone,
        ngo_id=ngo_id,
        permissions=permissions,
    )

    record_audit(session, admin, "MANAGER_ADDED", "user", manager.id, details={"permissions": permissions})
    await session.commit()
    return manager


async def update_manager(session: AsyncSession, admin: User, manager_id: uuid.UUID, payload: ManagerUpdate) -> User:
    manager = await get_manager(session, admin, manager_id)

    if payload.permissions is not None:
        # Reassign a new list so the JSON column is flagged dirty
        manager.permissions = validate_delegation(admin, Role.NGO_MANAGER, payload.permissions)
    if payload.is_active is not None:
        manager.is_active = payload.is_active
        if not payload.is_active:
            manager.refresh_token = None

    session.add(manager)
    record_audit(
        session, admin, "MANAGER_UPDATED", "user", manager.id,
        details=payload.model_dump(exclude_unset=True),
    )
    await session.commit()
    await session.refresh(manager)
    return manager


async def remove_manager(session: AsyncSession, admin: User, manager_id: uuid.UUID) -> User:
    manager = await get_manager(session, admin, manager_id)

    manager.is_active = False
    manager.refresh_token = None
    manager.permissions = []

    session.add(manager)
    record_audit(session, admin, "MANAGER_REMOVED", "user", manager.id)
    await session.commit()
    await session.refresh(manager)
    return manager
