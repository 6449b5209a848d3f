# sevadaan/api/endpoints/announcements.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session, get_optional_user
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.enums import ApprovalStatus, NotificationType
from sevadaan.models.user import User
from sevadaan.schemas.announcement import (
    AnnouncementCreate,
    AnnouncementRead,
    AnnouncementUpdate,
    ApprovalDecision,
)
from sevadaan.services import announcement_service
from sevadaan.services.notification_service import create_notification, push_notification

router = APIRouter(prefix="/api/v1/announcements", tags=["Announcements"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    payload: AnnouncementCreate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("announcements", "create")),
):
    announcement = await announcement_service.create_announcement(session, current_user, payload)
    return ok(AnnouncementRead.model_validate(announcement), "Announcement saved as draft")


@router.get("/ngo/{ngo_id}")
async def ngo_announcements(
    ngo_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    viewer: Optional[User] = Depends(get_optional_user),
):
    audience = viewer.role.value if viewer else Role.PUBLIC.value
    announcements, pagination = await announcement_service.list_active_for_ngo(session, ngo_id, audience, params)
    return ok([AnnouncementRead.model_validate(a) for a in announcements], pagination=pagination)


@router.get("/pending")
async def pending_announcements(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("announcements", "approve")),
):
    announcements, pagination = await announcement_service.list_pending(session, current_user, params)
    return ok([AnnouncementRead.model_validate(a) for a in announcements], pagination=pagination)


@router.put("/{announcement_id}")
async def update_announcement(
    announcement_id: uuid.UUID,
    payload: AnnouncementUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("announcements", "update")),
):
    announcement = await announcement_service.update_announcement(session, current_user, announcement_id, payload)
    return ok(AnnouncementRead.model_validate(announcement), "Announcement updated")


@router.post("/{announcement_id}/submit")
async def submit_announcement(
    announcement_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("announcements", "update")),
):
    announcement = await announcement_service.submit_announcement(session, current_user, announcement_id)
    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        announcement.ngo_id,
        EventType.ANNOUNCEMENT_SUBMITTED,
        {"announcement_id": announcement.id, "title": announcement.title},
    )
    return ok(AnnouncementRead.model_validate(announcement), "Announcement submitted for approval")


@router.post("/{announcement_id}/approval")
async def process_approval(
    announcement_id: uuid.UUID,
    payload: ApprovalDecision,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("announcements", "approve")),
):
    announcement = await announcement_service.process_approval(
        session, current_user, announcement_id, payload.approve, payload.comments
    )
    approved = announcement.approval_status == ApprovalStatus.Approved

    notification = await create_notification(
        session,
        announcement.created_by,
        title="Announcement approved" if approved else "Announcement rejected",
        message=f"'{announcement.title}' was {announcement.approval_status.value}."
                + (f" Comments: {payload.comments}" if payload.comments else ""),
        type=NotificationType.Announcement,
        action_url=f"/announcements/{announcement.id}",
    )
    await session.commit()

    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        announcement.ngo_id,
        EventType.ANNOUNCEMENT_DECISION,
        {"announcement_id": announcement.id, "status": announcement.approval_status},
    )
    background_tasks.add_task(push_notification, notification)
    return ok(
        AnnouncementRead.model_validate(announcement),
        "Announcement approved" if approved else "Announcement rejected",
    )


@router.post("/{announcement_id}/view")
async def record_view(announcement_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    announcement = await announcement_service.record_view(session, announcement_id)
    return ok({"id": announcement.id, "view_count": announcement.view_count})
