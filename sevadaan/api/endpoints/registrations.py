# sevadaan/api/endpoints/registrations.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_current_user, get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.enums import RegistrationStatus, RegistrationType
from sevadaan.models.user import User
from sevadaan.schemas.program_registration import RegistrationCreate, RegistrationFeedback, RegistrationStatusChange
from sevadaan.services import registration_service

router = APIRouter(prefix="/api/v1/programs/{program_id}/registrations", tags=["Program Registrations"])


def _announce(background_tasks: BackgroundTasks, registration) -> None:
    data = {
        "registration_id": registration.id,
        "program_id": registration.program_id,
        "status": registration.status,
    }
    background_tasks.add_task(connection_manager.emit_to_ngo, registration.ngo_id, EventType.REGISTRATION_UPDATED, data)
    background_tasks.add_task(connection_manager.emit_to_user, registration.user_id, EventType.REGISTRATION_UPDATED, data)


@router.post("", status_code=status.HTTP_201_CREATED)
async def register(
    program_id: uuid.UUID,
    payload: RegistrationCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "apply")),
):
    registration = await registration_service.register(session, current_user, program_id, payload)
    _announce(background_tasks, registration)
    return ok(registration, "Registration submitted")


@router.get("")
async def list_registrations(
    program_id: uuid.UUID,
    registration_status: Optional[RegistrationStatus] = Query(None, alias="status"),
    registration_type: Optional[RegistrationType] = Query(None, alias="type"),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    registrations, pagination = await registration_service.list_registrations(
        session, current_user, program_id, params, registration_status, registration_type
    )
    return ok(registrations, pagination=pagination)


@router.get("/stats")
async def registration_stats(
    program_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "read")),
):
    return ok(await registration_service.stats(session, current_user, program_id))


@router.get("/{registration_id}")
async def get_registration(
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    return ok(await registration_service.get_registration(session, current_user, program_id, registration_id))


@router.post("/{registration_id}/status")
async def update_registration_status(
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    payload: RegistrationStatusChange,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "update")),
):
    registration = await registration_service.update_status(
        session, current_user, program_id, registration_id, payload.status, payload.notes
    )
    _announce(background_tasks, registration)
    return ok(registration, f"Registration {registration.status.value}")


@router.post("/{registration_id}/cancel")
async def cancel_registration(
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("applications", "update")),
):
    registration = await registration_service.cancel(session, current_user, program_id, registration_id)
    _announce(background_tasks, registration)
    return ok(registration, "Registration cancelled")


@router.post("/{registration_id}/feedback")
async def submit_feedback(
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    payload: RegistrationFeedback,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("applications", "update")),
):
    registration = await registration_service.add_feedback(
        session, current_user, program_id, registration_id, payload.rating, payload.comment
    )
    return ok(registration, "Feedback submitted")
