# sevadaan/api/endpoints/notifications.py

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_current_user, get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.schemas.notification import BroadcastRequest
from sevadaan.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("/")
async def list_notifications(
    unread_only: bool = Query(False),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    notifications, pagination = await notification_service.list_notifications(
        session, current_user.id, params, unread_only
    )
    return ok(notifications, pagination=pagination)


@router.get("/unread-count")
async def unread_count(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    count = await notification_service.unread_count(session, current_user.id)
    return ok({"count": count})


@router.post("/read-all")
async def mark_all_read(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    updated = await notification_service.mark_all_read(session, current_user.id)
    return ok({"updated": updated}, "All notifications marked as read")


@router.post("/broadcast")
async def broadcast(
    payload: BroadcastRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_permission("notifications", "broadcast")),
):
    notifications = await notification_service.broadcast_to_role(
        session, payload.role, payload.title, payload.message, payload.type, payload.action_url
    )
    background_tasks.add_task(
        connection_manager.emit_to_role,
        payload.role,
        EventType.NOTIFICATION,
        {"title": payload.title, "message": payload.message, "type": payload.type, "action_url": payload.action_url},
    )
    return ok({"recipients": len(notifications)}, "Broadcast sent")


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    notification = await notification_service.mark_read(session, current_user.id, notification_id)
    return ok(notification, "Notification marked as read")
