# sevadaan/services/dashboard_service.py

from sqlalchemy import func
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.permissions import Role
from sevadaan.models.donation import Donation
from sevadaan.models.emergency import EmergencyRequest
from sevadaan.models.enums import (
    EmergencyStatus,
    NGOStatus,
    PaymentStatus,
    ProgramStatus,
    VolunteerStatus,
)
from sevadaan.models.ngo import NGO
from sevadaan.models.program import Program
from sevadaan.models.user import User
from sevadaan.models.volunteer import VolunteerApplication
from sevadaan.services.notification_service import unread_count


async def _count(session: AsyncSession, model, *conditions) -> int:
    query = select(func.count()).select_from(model)
    for condition in conditions:
        query = query.where(condition)
    return (await session.scalar(query)) or 0


async def _sum(session: AsyncSession, column, *conditions) -> float:
    query = select(func.coalesce(func.sum(column), 0))
    for condition in conditions:
        query = query.where(condition)
    return float((await session.scalar(query)) or 0)


# ===================================================================
# PER-ROLE SUMMARIES
# ===================================================================
async def _platform_summary(session: AsyncSession) -> dict:
    return {
        "users": await _count(session, User),
        "ngos": {
            "total": await _count(session, NGO),
            "verified": await _count(session, NGO, NGO.status == NGOStatus.Verified),
            "pendingKyc": await _count(session, NGO, NGO.status == NGOStatus.DocumentsSubmitted),
            "suspended": await _count(session, NGO, NGO.status == NGOStatus.Suspended),
        },
        "emergencies": {
            "pending": await _count(
                session, EmergencyRequest,
                EmergencyRequest.status == EmergencyStatus.Pending,
                EmergencyRequest.is_active.is_(True),
            ),
            "inProgress": await _count(session, EmergencyRequest, EmergencyRequest.status == EmergencyStatus.InProgress),
        },
        "donations": {
            "completed": await _count(session, Donation, Donation.payment_status == PaymentStatus.Completed),
            "totalAmount": await _sum(session, Donation.amount, Donation.payment_status == PaymentStatus.Completed),
        },
    }


async def _ngo_summary(session: AsyncSession, user: User) -> dict:
    ngo = await session.get(NGO, user.ngo_id) if user.ngo_id else None
    if not ngo:
        return {"ngo": None}

    return {
        "ngo": {"id": ngo.id, "name": ngo.name, "status": ngo.status, "slug": ngo.slug},
        "programs": {
            "total": await _count(session, Program, Program.ngo_id == ngo.id),
            "active": await _count(session, Program, Program.ngo_id == ngo.id, Program.status == ProgramStatus.Active),
        },
        "volunteers": {
            "approved": await _count(
                session, VolunteerApplication,
                VolunteerApplication.ngo_id == ngo.id,
                VolunteerApplication.status == VolunteerStatus.Approved,
            ),
            "pending": await _count(
                session, VolunteerApplication,
                VolunteerApplication.ngo_id == ngo.id,
                VolunteerApplication.status == VolunteerStatus.Pending,
            ),
        },
        "donations": {
            "totalAmount": await _sum(
                session, Donation.amount,
                Donation.ngo_id == ngo.id,
                Donation.payment_status == PaymentStatus.Completed,
            ),
        },
        "emergencies": {
            "open": await _count(
                session, EmergencyRequest,
                EmergencyRequest.assigned_to_ngo == ngo.id,
                EmergencyRequest.status == EmergencyStatus.InProgress,
            ),
        },
    }


async def _volunteer_summary(session: AsyncSession, user: User) -> dict:
    return {
        "applications": {
            "total": await _count(session, VolunteerApplication, VolunteerApplication.user_id == user.id),
            "approved": await _count(
                session, VolunteerApplication,
                VolunteerApplication.user_id == user.id,
                VolunteerApplication.status == VolunteerStatus.Approved,
            ),
        },
        "hoursLogged": await _sum(session, VolunteerApplication.hours_logged, VolunteerApplication.user_id == user.id),
    }


async def _donor_summary(session: AsyncSession, user: User) -> dict:
    completed = (Donation.donor_id == user.id, Donation.payment_status == PaymentStatus.Completed)
    return {
        "donations": {
            "count": await _count(session, Donation, *completed),
            "totalAmount": await _sum(session, Donation.amount, *completed),
        },
    }


async def _citizen_summary(session: AsyncSession, user: User) -> dict:
    return {
        "emergencies": {
            "total": await _count(session, EmergencyRequest, EmergencyRequest.user_id == user.id),
            "open": await _count(
                session, EmergencyRequest,
                EmergencyRequest.user_id == user.id,
                EmergencyRequest.status.in_([EmergencyStatus.Pending, EmergencyStatus.InProgress]),
            ),
        },
    }


async def get_dashboard(session: AsyncSession, user: User) -> dict:
    if user.role == Role.SUPER_ADMIN:
        summary = await _platform_summary(session)
    elif user.role in (Role.NGO_ADMIN, Role.NGO_MANAGER):
        summary = await _ngo_summary(session, user)
    elif user.role == Role.VOLUNTEER:
        summary = await _volunteer_summary(session, user)
    elif user.role == Role.DONOR:
        summary = await _donor_summary(session, user)
    else:
        summary = await _citizen_summary(session, user)

    summary["role"] = user.role
    summary["unreadNotifications"] = await unread_count(session, user.id)
    return summary
