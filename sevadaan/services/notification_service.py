# sevadaan/services/notification_service.py

import uuid
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.core.permissions import Role
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.models.enums import NotificationType
from sevadaan.models.notification import Notification
from sevadaan.models.user import User


async def create_notification(
    session: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: NotificationType = NotificationType.General,
    action_url: Optional[str] = None,
    extra: Optional[Dict] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        action_url=action_url,
        extra=extra or {},
    )
    session.add(notification)
    await session.flush()
    return notification


async def push_notification(notification: Notification) -> None:
    """Best-effort live delivery of an already persisted notification."""
    await connection_manager.emit_to_user(
        notification.user_id,
        EventType.NOTIFICATION,
        {
            "id": notification.id,
            "title": notification.title,
            "message": notification.message,
            "type": notification.type,
            "action_url": notification.action_url,
        },
    )


async def list_notifications(
    session: AsyncSession,
    user_id: uuid.UUID,
    params: PageParams,
    unread_only: bool = False,
):
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    query = query.order_by(Notification.created_at.desc())
    return await paginate(session, query, params)


async def unread_count(session: AsyncSession, user_id: uuid.UUID) -> int:
    total = await session.scalar(
        select(func.count()).select_from(Notification).where(
            (Notification.user_id == user_id) & (Notification.read.is_(False))
        )
    )
    return total or 0


async def mark_read(session: AsyncSession, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
    notification = await session.get(Notification, notification_id)
    # Other users' notifications are reported as missing
    if not notification or notification.user_id != user_id:
        raise NotFoundError("Notification not found")

    notification.read = True
    session.add(notification)
    await session.commit()
    return notification


async def mark_all_read(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where((Notification.user_id == user_id) & (Notification.read.is_(False)))
        .values(read=True)
    )
    await session.commit()
    return result.rowcount or 0


async def broadcast_to_role(
    session: AsyncSession,
    role: Role,
    title: str,
    message: str,
    type: NotificationType = NotificationType.General,
    action_url: Optional[str] = None,
) -> List[Notification]:
    result = await session.execute(
        select(User.id).where((User.role == role) & (User.is_active.is_(True)))
    )
    notifications = [
        Notification(user_id=user_id, title=title, message=message, type=type, action_url=action_url)
        for user_id in result.scalars().all()
    ]
    session.add_all(notifications)
    await session.commit()
    return notifications
