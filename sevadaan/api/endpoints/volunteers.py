# sevadaan/api/endpoints/volunteers.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_current_user, get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.enums import VolunteerStatus
from sevadaan.models.user import User
from sevadaan.schemas.volunteer import HoursLog, VolunteerApply, VolunteerReview
from sevadaan.services import volunteer_service

router = APIRouter(prefix="/api/v1/volunteers", tags=["Volunteers"])


def _announce(background_tasks: BackgroundTasks, application) -> None:
    data = {"application_id": application.id, "status": application.status}
    background_tasks.add_task(connection_manager.emit_to_ngo, application.ngo_id, EventType.VOLUNTEER_UPDATED, data)
    background_tasks.add_task(connection_manager.emit_to_user, application.user_id, EventType.VOLUNTEER_UPDATED, data)


@router.post("/apply", status_code=status.HTTP_201_CREATED)
async def apply(
    payload: VolunteerApply,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("volunteers", "create")),
):
    application = await volunteer_service.apply(session, current_user, payload)
    _announce(background_tasks, application)
    return ok(application, "Application submitted")


@router.get("/mine")
async def my_applications(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    applications, pagination = await volunteer_service.list_mine(session, current_user, params)
    return ok(applications, pagination=pagination)


@router.get("/ngo")
async def ngo_applications(
    ngo_id: Optional[uuid.UUID] = Query(None),
    application_status: Optional[VolunteerStatus] = Query(None, alias="status"),
    program_id: Optional[uuid.UUID] = Query(None),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("volunteers", "read")),
):
    applications, pagination = await volunteer_service.list_for_ngo(
        session, current_user, params, ngo_id, application_status, program_id
    )
    return ok(applications, pagination=pagination)


@router.post("/{application_id}/review")
async def review_application(
    application_id: uuid.UUID,
    payload: VolunteerReview,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("volunteers", "update")),
):
    application = await volunteer_service.review(session, current_user, application_id, payload.approve, payload.notes)
    _announce(background_tasks, application)
    return ok(application, f"Application {application.status.value}")


@router.post("/{application_id}/withdraw")
async def withdraw_application(
    application_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    application = await volunteer_service.withdraw(session, current_user, application_id)
    _announce(background_tasks, application)
    return ok(application, "Application withdrawn")


@router.post("/{application_id}/hours")
async def log_hours(
    application_id: uuid.UUID,
    payload: HoursLog,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    application = await volunteer_service.log_hours(session, current_user, application_id, payload.hours)
    return ok(application, "Hours logged")


@router.post("/{application_id}/complete")
async def complete_application(
    application_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("volunteers", "update")),
):
    application = await volunteer_service.complete(session, current_user, application_id)
    _announce(background_tasks, application)
    return ok(application, "Volunteer engagement completed")
