# sevadaan/services/announcement_service.py

import uuid
from typing import Optional

from sqlalchemy import or_
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, InvalidTransitionError, NotFoundError
from sevadaan.core.pagination import PageParams, build_pagination, paginate
from sevadaan.core.permissions import Role
from sevadaan.models.announcement import Announcement
from sevadaan.models.common import utcnow
from sevadaan.models.enums import ApprovalStatus
from sevadaan.models.user import User
from sevadaan.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from sevadaan.services.ngo_service import ensure_ngo_access, is_super_admin, require_user_ngo

AUDIENCE_VALUES = {"all"} | {role.value for role in Role}


def _check_audience(audience) -> None:
    unknown = [value for value in audience if value not in AUDIENCE_VALUES]
    if unknown:
        raise BadRequestError(f"Unknown target audience: {', '.join(unknown)}")


async def get_announcement(session: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
    announcement = await session.get(Announcement, announcement_id)
    if not announcement:
        raise NotFoundError("Announcement not found")
    return announcement


async def create_announcement(session: AsyncSession, actor: User, payload: AnnouncementCreate) -> Announcement:
    ngo_id = require_user_ngo(actor)
    _check_audience(payload.target_audience)

    announcement = Announcement(**payload.model_dump(), ngo_id=ngo_id, created_by=actor.id)
    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    return announcement


async def update_announcement(
    session: AsyncSession,
    actor: User,
    announcement_id: uuid.UUID,
    payload: AnnouncementUpdate,
) -> Announcement:
    announcement = await get_announcement(session, announcement_id)
    ensure_ngo_access(actor, announcement.ngo_id)

    if announcement.approval_status not in (ApprovalStatus.Draft, ApprovalStatus.Rejected):
        raise InvalidTransitionError("Only draft or rejected announcements can be edited")

    changes = payload.model_dump(exclude_unset=True)
    if "target_audience" in changes:
        _check_audience(changes["target_audience"] or [])

    for field, value in changes.items():
        setattr(announcement, field, value)
    announcement.updated_by = actor.id

    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    return announcement


async def submit_announcement(session: AsyncSession, actor: User, announcement_id: uuid.UUID) -> Announcement:
    announcement = await get_announcement(session, announcement_id)
    ensure_ngo_access(actor, announcement.ngo_id)

    announcement.submit_for_approval()
    announcement.updated_by = actor.id

    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    return announcement


async def process_approval(
    session: AsyncSession,
    actor: User,
    announcement_id: uuid.UUID,
    approve: bool,
    comments: Optional[str],
) -> Announcement:
    announcement = await get_announcement(session, announcement_id)
    ensure_ngo_access(actor, announcement.ngo_id)

    if approve:
        announcement.approve(actor.id, comments)
    else:
        announcement.reject(actor.id, comments)

    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    return announcement


async def list_pending(session: AsyncSession, actor: User, params: PageParams):
    query = select(Announcement).where(Announcement.approval_status == ApprovalStatus.PendingApproval)
    if not is_super_admin(actor):
        query = query.where(Announcement.ngo_id == require_user_ngo(actor))
    query = query.order_by(Announcement.created_at.asc())
    return await paginate(session, query, params)


async def list_active_for_ngo(
    session: AsyncSession,
    ngo_id: uuid.UUID,
    audience: Optional[str],
    params: PageParams,
):
    now = utcnow()
    query = select(Announcement).where(
        (Announcement.ngo_id == ngo_id)
        & (Announcement.is_active.is_(True))
        & (Announcement.approval_status == ApprovalStatus.Approved)
        & (Announcement.published_at <= now)
        & or_(Announcement.expiry_date.is_(None), Announcement.expiry_date > now)
    ).order_by(Announcement.published_at.desc())

    # JSON containment differs per dialect, so audience filtering happens here
    result = await session.execute(query)
    visible = [a for a in result.scalars().all() if a.is_visible_to(audience, now)]
    page = visible[params.offset:params.offset + params.limit]
    return page, build_pagination(len(visible), params.page, params.limit)


async def record_view(session: AsyncSession, announcement_id: uuid.UUID) -> Announcement:
    announcement = await get_announcement(session, announcement_id)
    if not announcement.is_active:
        raise NotFoundError("Announcement not found")

    announcement.view_count = (announcement.view_count or 0) + 1
    session.add(announcement)
    await session.commit()
    await session.refresh(announcement)
    return announcement
