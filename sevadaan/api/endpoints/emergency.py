# sevadaan/api/endpoints/emergency.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_current_user, get_db_session, get_optional_user
from sevadaan.core.config import Settings
from sevadaan.core.errors import ForbiddenError
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role
from sevadaan.core.rate_limiter import EMERGENCY_LIMIT, limiter
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager, role_room
from sevadaan.core.responses import ok
from sevadaan.models.enums import EmergencyStatus, EmergencyType, NotificationType, UrgencyLevel
from sevadaan.models.user import User
from sevadaan.schemas.emergency import (
    AssignRequest,
    EmergencyCreate,
    EmergencyPublicRead,
    EmergencyRead,
    EmergencyResolution,
    RejectRequest,
    VerificationRequest,
)
from sevadaan.services import emergency_service
from sevadaan.services.email_service import send_emergency_assigned_email
from sevadaan.services.ngo_service import is_super_admin
from sevadaan.services.notification_service import create_notification, push_notification

router = APIRouter(prefix="/api/v1/emergency", tags=["Emergency"])


def _summary(request) -> dict:
    return EmergencyPublicRead.model_validate(request).model_dump()


# -------------------------------------------------------------------
# RAISE A REQUEST (anonymous allowed)
# -------------------------------------------------------------------
@router.post("/", status_code=status.HTTP_201_CREATED)
@limiter.limit(EMERGENCY_LIMIT)
async def create_emergency(
    request: Request,
    payload: EmergencyCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    requester: Optional[User] = Depends(get_optional_user),
):
    emergency = await emergency_service.create_request(session, payload, requester)

    background_tasks.add_task(
        connection_manager.emit_to_role, Role.SUPER_ADMIN, EventType.EMERGENCY_CREATED, _summary(emergency)
    )
    background_tasks.add_task(connection_manager.emit_dashboard_refresh, role_room(Role.SUPER_ADMIN), "emergency")
    return ok(EmergencyPublicRead.model_validate(emergency), "Emergency request received")


# -------------------------------------------------------------------
# READ
# -------------------------------------------------------------------
@router.get("/")
async def list_emergencies(
    emergency_type: Optional[EmergencyType] = Query(None),
    urgency_level: Optional[UrgencyLevel] = Query(None),
    emergency_status: Optional[EmergencyStatus] = Query(None, alias="status"),
    state: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    verified: Optional[bool] = Query(None),
    assigned: Optional[bool] = Query(None),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    filters = emergency_service.EmergencyFilters(
        emergency_type=emergency_type,
        urgency_level=urgency_level,
        status=emergency_status,
        state=state,
        city=city,
        verified=verified,
        assigned=assigned,
    )
    requests, pagination = await emergency_service.list_requests(session, current_user, filters, params)
    return ok([EmergencyRead.model_validate(r) for r in requests], pagination=pagination)


@router.get("/stats/{ngo_id}")
async def emergency_stats(
    ngo_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("emergency", "read")),
):
    if not is_super_admin(current_user) and current_user.ngo_id != ngo_id:
        raise ForbiddenError("You do not have access to this NGO")
    stats = await emergency_service.stats_for_ngo(session, ngo_id)
    return ok(stats)


@router.get("/{request_id}")
async def get_emergency(
    request_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    emergency = await emergency_service.get_visible_request(session, current_user, request_id)
    return ok(EmergencyRead.model_validate(emergency))


# -------------------------------------------------------------------
# TRANSITIONS
# -------------------------------------------------------------------
@router.post("/{request_id}/assign")
async def assign_emergency(
    request_id: uuid.UUID,
    payload: AssignRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("emergency", "assign")),
):
    emergency, ngo = await emergency_service.assign_request(session, current_user, request_id, payload.ngo_id)

    notification = None
    if ngo.admin_id:
        notification = await create_notification(
            session,
            ngo.admin_id,
            title="Emergency assigned",
            message=f"A {emergency.urgency_level.value} {emergency.emergency_type.value} emergency in "
                    f"{emergency.city} has been assigned to {ngo.name}.",
            type=NotificationType.Emergency,
            action_url=f"/emergency/{emergency.id}",
        )
        await session.commit()

    background_tasks.add_task(
        connection_manager.emit_to_ngo, ngo.id, EventType.EMERGENCY_ASSIGNED, EmergencyRead.model_validate(emergency)
    )
    if emergency.user_id:
        background_tasks.add_task(
            connection_manager.emit_to_user, emergency.user_id, EventType.EMERGENCY_ASSIGNED, _summary(emergency)
        )
    if notification:
        background_tasks.add_task(push_notification, notification)
    background_tasks.add_task(send_emergency_assigned_email, settings, {
        "email": ngo.contact_email,
        "ngo_name": ngo.name,
        "emergency_type": emergency.emergency_type.value,
        "urgency_level": emergency.urgency_level.value,
        "city": emergency.city,
        "request_id": str(emergency.id),
    })
    return ok(EmergencyRead.model_validate(emergency), f"Assigned to {ngo.name}")


@router.post("/{request_id}/resolve")
async def resolve_emergency(
    request_id: uuid.UUID,
    payload: EmergencyResolution,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    emergency = await emergency_service.resolve_request(session, current_user, request_id, payload)

    background_tasks.add_task(
        connection_manager.emit_to_role, Role.SUPER_ADMIN, EventType.EMERGENCY_RESOLVED, _summary(emergency)
    )
    if emergency.user_id:
        background_tasks.add_task(
            connection_manager.emit_to_user, emergency.user_id, EventType.EMERGENCY_RESOLVED, _summary(emergency)
        )
    return ok(EmergencyRead.model_validate(emergency), "Emergency resolved")


@router.post("/{request_id}/verify")
async def verify_emergency(
    request_id: uuid.UUID,
    payload: VerificationRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("emergency", "verify")),
):
    emergency = await emergency_service.verify_request(session, current_user, request_id, payload.notes)
    if emergency.user_id:
        background_tasks.add_task(
            connection_manager.emit_to_user, emergency.user_id, EventType.EMERGENCY_VERIFIED, _summary(emergency)
        )
    return ok(EmergencyRead.model_validate(emergency), "Emergency verified")


@router.post("/{request_id}/reject")
async def reject_emergency(
    request_id: uuid.UUID,
    payload: RejectRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("emergency", "verify")),
):
    emergency = await emergency_service.reject_request(session, current_user, request_id, payload.notes)
    if emergency.user_id:
        background_tasks.add_task(
            connection_manager.emit_to_user, emergency.user_id, EventType.EMERGENCY_REJECTED, _summary(emergency)
        )
    return ok(EmergencyRead.model_validate(emergency), "Emergency rejected")


@router.post("/{request_id}/close")
async def close_emergency(
    request_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    emergency = await emergency_service.close_request(session, current_user, request_id)
    return ok(EmergencyRead.model_validate(emergency), "Emergency closed")
