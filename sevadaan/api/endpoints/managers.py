# sevadaan/api/endpoints/managers.py

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_db_session
from sevadaan.core.config import Settings
from sevadaan.core.permissions import Role, get_delegatable_permissions
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.schemas.manager import ManagerCreate, ManagerUpdate
from sevadaan.schemas.user import UserRead
from sevadaan.services import manager_service
from sevadaan.services.email_service import send_manager_invite_email
from sevadaan.services.ngo_service import get_ngo

router = APIRouter(prefix="/api/v1/managers", tags=["NGO Managers"])


def _announce(background_tasks: BackgroundTasks, event: EventType, manager: User) -> None:
    data = {"manager_id": manager.id, "name": manager.name, "permissions": manager.permissions}
    background_tasks.add_task(connection_manager.emit_to_ngo, manager.ngo_id, event, data)
    background_tasks.add_task(connection_manager.emit_to_user, manager.id, event, data)


@router.get("/")
async def list_managers(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("managers", "read")),
):
    managers = await manager_service.list_managers(session, current_user)
    return ok([UserRead.model_validate(m) for m in managers])


@router.get("/delegatable-permissions")
async def delegatable_permissions(current_user: User = Depends(require_permission("managers", "read"))):
    return ok({
        "role": Role.NGO_MANAGER,
        "permissions": get_delegatable_permissions(current_user.role),
    })


@router.post("/", status_code=status.HTTP_201_CREATED)
async def add_manager(
    payload: ManagerCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("managers", "create")),
):
    manager = await manager_service.add_manager(session, current_user, payload)
    ngo = await get_ngo(session, manager.ngo_id)

    _announce(background_tasks, EventType.MANAGER_ADDED, manager)
    background_tasks.add_task(send_manager_invite_email, settings, {
        "email": manager.email,
        "name": manager.name,
        "ngo_name": ngo.name,
        "permissions": manager.permissions,
    })
    return ok(UserRead.model_validate(manager), "Manager added")


@router.put("/{manager_id}")
async def update_manager(
    manager_id: uuid.UUID,
    payload: ManagerUpdate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("managers", "update")),
):
    manager = await manager_service.update_manager(session, current_user, manager_id, payload)
    _announce(background_tasks, EventType.MANAGER_UPDATED, manager)
    return ok(UserRead.model_validate(manager), "Manager updated")


@router.delete("/{manager_id}")
async def remove_manager(
    manager_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("managers", "delete")),
):
    manager = await manager_service.remove_manager(session, current_user, manager_id)
    _announce(background_tasks, EventType.MANAGER_REMOVED, manager)
    return ok(UserRead.model_validate(manager), "Manager removed")
