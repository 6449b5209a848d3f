# sevadaan/services/registration_service.py

import uuid
from typing import Optional

from sqlalchemy import func
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.enums import ProgramStatus, RegistrationStatus, RegistrationType
from sevadaan.models.program import Program
from sevadaan.models.program_registration import ProgramRegistration
from sevadaan.models.user import User
from sevadaan.schemas.program_registration import RegistrationCreate
from sevadaan.services.ngo_service import ensure_ngo_access, is_super_admin
from sevadaan.services.program_service import get_program


def _is_program_staff(user: User, program: Program) -> bool:
    return is_super_admin(user) or (user.ngo_id is not None and user.ngo_id == program.ngo_id)


async def _load(session: AsyncSession, program_id: uuid.UUID, registration_id: uuid.UUID) -> ProgramRegistration:
    registration = await session.get(ProgramRegistration, registration_id)
    if not registration or registration.program_id != program_id:
        raise NotFoundError("Registration not found")
    return registration


async def _adjust_participants(session: AsyncSession, program_id: uuid.UUID, delta: int) -> None:
    program = await session.get(Program, program_id)
    if program:
        program.participants_count = max(0, (program.participants_count or 0) + delta)
        session.add(program)


async def _save(session: AsyncSession, registration: ProgramRegistration) -> ProgramRegistration:
    session.add(registration)
    await session.commit()
    await session.refresh(registration)
    return registration


async def register(
    session: AsyncSession, user: User, program_id: uuid.UUID, payload: RegistrationCreate
) -> ProgramRegistration:
    program = await get_program(session, program_id)
    if program.status != ProgramStatus.Active:
        raise BadRequestError("Program is not accepting registrations")

    # One registration per user and program, whatever its status
    existing = await session.execute(
        select(ProgramRegistration).where(
            (ProgramRegistration.program_id == program.id) & (ProgramRegistration.user_id == user.id)
        )
    )
    if existing.scalars().first():
        raise ConflictError("You have already registered for this program")

    registration = ProgramRegistration(
        program_id=program.id,
        ngo_id=program.ngo_id,
        user_id=user.id,
        registration_type=payload.registration_type,
        application_data=payload.application_data.model_dump(mode="json", exclude_none=True),
    )
    return await _save(session, registration)


async def list_registrations(
    session: AsyncSession,
    viewer: User,
    program_id: uuid.UUID,
    params: PageParams,
    status: Optional[RegistrationStatus] = None,
    registration_type: Optional[RegistrationType] = None,
):
    program = await get_program(session, program_id)
    query = select(ProgramRegistration).where(ProgramRegistration.program_id == program.id)
    if not _is_program_staff(viewer, program):
        # Registrants only see their own entry
        query = query.where(ProgramRegistration.user_id == viewer.id)
    if status:
        query = query.where(ProgramRegistration.status == status)
    if registration_type:
        query = query.where(ProgramRegistration.registration_type == registration_type)
    query = query.order_by(ProgramRegistration.created_at.desc())
    return await paginate(session, query, params)


async def get_registration(
    session: AsyncSession, viewer: User, program_id: uuid.UUID, registration_id: uuid.UUID
) -> ProgramRegistration:
    registration = await _load(session, program_id, registration_id)
    if registration.user_id != viewer.id:
        ensure_ngo_access(viewer, registration.ngo_id)
    return registration


async def update_status(
    session: AsyncSession,
    actor: User,
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    status: RegistrationStatus,
    notes: Optional[str] = None,
) -> ProgramRegistration:
    registration = await _load(session, program_id, registration_id)
    ensure_ngo_access(actor, registration.ngo_id)

    if status == RegistrationStatus.Approved:
        program = await get_program(session, program_id)
        if program.is_full:
            raise ConflictError("Program has no open places")

    registration.decide(actor.id, status, notes)
    if status == RegistrationStatus.Approved:
        await _adjust_participants(session, program_id, 1)
    return await _save(session, registration)


async def cancel(
    session: AsyncSession, user: User, program_id: uuid.UUID, registration_id: uuid.UUID
) -> ProgramRegistration:
    registration = await _load(session, program_id, registration_id)
    if registration.user_id != user.id:
        raise ForbiddenError("You can only cancel your own registration")

    was_approved = registration.status == RegistrationStatus.Approved
    registration.cancel()
    if was_approved:
        await _adjust_participants(session, program_id, -1)
    return await _save(session, registration)


async def add_feedback(
    session: AsyncSession,
    user: User,
    program_id: uuid.UUID,
    registration_id: uuid.UUID,
    rating: int,
    comment: Optional[str] = None,
) -> ProgramRegistration:
    registration = await _load(session, program_id, registration_id)
    if registration.user_id != user.id:
        raise ForbiddenError("You can only review your own registration")

    registration.add_feedback(rating, comment)
    return await _save(session, registration)


async def stats(session: AsyncSession, actor: User, program_id: uuid.UUID) -> dict:
    program = await get_program(session, program_id)
    ensure_ngo_access(actor, program.ngo_id)

    by_status = {value.value: 0 for value in RegistrationStatus}
    rows = await session.execute(
        select(ProgramRegistration.status, func.count())
        .where(ProgramRegistration.program_id == program.id)
        .group_by(ProgramRegistration.status)
    )
    for status, count in rows.all():
        by_status[status.value] = count

    by_type = {value.value: 0 for value in RegistrationType}
    rows = await session.execute(
        select(ProgramRegistration.registration_type, func.count())
        .where(ProgramRegistration.program_id == program.id)
        .group_by(ProgramRegistration.registration_type)
    )
    for registration_type, count in rows.all():
        by_type[registration_type.value] = count

    rating = await session.scalar(
        select(func.avg(ProgramRegistration.feedback_rating)).where(
            (ProgramRegistration.program_id == program.id) & ProgramRegistration.feedback_rating.is_not(None)
        )
    )

    return {
        "total": sum(by_status.values()),
        "byStatus": by_status,
        "byType": by_type,
        "averageRating": round(float(rating), 2) if rating is not None else None,
    }
