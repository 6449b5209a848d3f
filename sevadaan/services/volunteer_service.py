# sevadaan/services/volunteer_service.py

import uuid
from typing import Optional

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.enums import NGOStatus, ProgramStatus, VolunteerStatus
from sevadaan.models.ngo import NGO
from sevadaan.models.program import Program
from sevadaan.models.user import User
from sevadaan.models.volunteer import VolunteerApplication
from sevadaan.schemas.volunteer import VolunteerApply
from sevadaan.services.ngo_service import ensure_ngo_access, get_ngo, resolve_target_ngo

OPEN_STATUSES = (VolunteerStatus.Pending, VolunteerStatus.Approved)


async def get_application(session: AsyncSession, application_id: uuid.UUID) -> VolunteerApplication:
    application = await session.get(VolunteerApplication, application_id)
    if not application:
        raise NotFoundError("Volunteer application not found")
    return application


async def apply(session: AsyncSession, user: User, payload: VolunteerApply) -> VolunteerApplication:
    ngo = await get_ngo(session, payload.ngo_id)
    if ngo.status != NGOStatus.Verified:
        raise BadRequestError("Applications are only accepted by verified NGOs")

    if payload.program_id:
        program = await session.get(Program, payload.program_id)
        if not program or program.ngo_id != ngo.id:
            raise NotFoundError("Program not found")
        if program.status != ProgramStatus.Active:
            raise BadRequestError("Program is not accepting volunteers")
        if program.is_full:
            raise ConflictError("Program has no open volunteer slots")

    # One open application per user, NGO and program
    existing = await session.execute(
        select(VolunteerApplication).where(
            (VolunteerApplication.user_id == user.id)
            & (VolunteerApplication.ngo_id == ngo.id)
            & (VolunteerApplication.program_id == payload.program_id if payload.program_id
               else VolunteerApplication.program_id.is_(None))
            & (VolunteerApplication.status.in_(OPEN_STATUSES))
        )
    )
    if existing.scalars().first():
        raise ConflictError("You already have an open application")

    application = VolunteerApplication(**payload.model_dump(), user_id=user.id)
    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application


async def list_mine(session: AsyncSession, user: User, params: PageParams):
    query = (
        select(VolunteerApplication)
        .where(VolunteerApplication.user_id == user.id)
        .order_by(VolunteerApplication.created_at.desc())
    )
    return await paginate(session, query, params)


async def list_for_ngo(
    session: AsyncSession,
    actor: User,
    params: PageParams,
    ngo_id: Optional[uuid.UUID] = None,
    status: Optional[VolunteerStatus] = None,
    program_id: Optional[uuid.UUID] = None,
):
    target = resolve_target_ngo(actor, ngo_id)
    query = select(VolunteerApplication).where(VolunteerApplication.ngo_id == target)
    if status:
        query = query.where(VolunteerApplication.status == status)
    if program_id:
        query = query.where(VolunteerApplication.program_id == program_id)
    query = query.order_by(VolunteerApplication.created_at.desc())
    return await paginate(session, query, params)


async def _adjust_counters(session: AsyncSession, application: VolunteerApplication, delta: int) -> None:
    ngo = await session.get(NGO, application.ngo_id)
    if ngo:
        ngo.total_volunteers = max(0, (ngo.total_volunteers or 0) + delta)
        session.add(ngo)
    if application.program_id:
        program = await session.get(Program, application.program_id)
        if program:
            program.participants_count = max(0, (program.participants_count or 0) + delta)
            session.add(program)


async def review(
    session: AsyncSession,
    actor: User,
    application_id: uuid.UUID,
    approve: bool,
    notes: Optional[str],
) -> VolunteerApplication:
    application = await get_application(session, application_id)
    ensure_ngo_access(actor, application.ngo_id)

    if approve and application.program_id:
        program = await session.get(Program, application.program_id)
        if program and program.is_full:
            raise ConflictError("Program has no open volunteer slots")

    application.review(actor.id, approve, notes)
    if approve:
        await _adjust_counters(session, application, 1)

    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application


async def withdraw(session: AsyncSession, user: User, application_id: uuid.UUID) -> VolunteerApplication:
    application = await get_application(session, application_id)
    if application.user_id != user.id:
        raise ForbiddenError("You can only withdraw your own application")

    was_approved = application.status == VolunteerStatus.Approved
    application.withdraw()
    if was_approved:
        await _adjust_counters(session, application, -1)

    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application


async def log_hours(session: AsyncSession, actor: User, application_id: uuid.UUID, hours: float) -> VolunteerApplication:
    application = await get_application(session, application_id)
    if application.user_id != actor.id:
        ensure_ngo_access(actor, application.ngo_id)

    application.log_hours(hours)

    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application


async def complete(session: AsyncSession, actor: User, application_id: uuid.UUID) -> VolunteerApplication:
    application = await get_application(session, application_id)
    ensure_ngo_access(actor, application.ngo_id)

    application.complete()

    session.add(application)
    await session.commit()
    await session.refresh(application)
    return application
