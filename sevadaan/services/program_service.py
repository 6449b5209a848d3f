# sevadaan/services/program_service.py

import uuid
from typing import Optional

from sqlalchemy import or_
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import ConflictError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.enums import ProgramStatus
from sevadaan.models.ngo import NGO
from sevadaan.models.program import Program
from sevadaan.models.user import User
from sevadaan.schemas.program import ProgramCreate, ProgramUpdate
from sevadaan.services.ngo_service import ensure_ngo_access, get_ngo, is_super_admin, resolve_target_ngo


async def get_program(session: AsyncSession, program_id: uuid.UUID) -> Program:
    program = await session.get(Program, program_id)
    if not program:
        raise NotFoundError("Program not found")
    return program


def _is_public(program: Program) -> bool:
    return program.status in (ProgramStatus.Active, ProgramStatus.Completed)


async def get_visible_program(session: AsyncSession, program_id: uuid.UUID, viewer: Optional[User]) -> Program:
    program = await get_program(session, program_id)
    if _is_public(program):
        return program
    if viewer and (is_super_admin(viewer) or viewer.ngo_id == program.ngo_id):
        return program
    raise NotFoundError("Program not found")


async def list_programs(
    session: AsyncSession,
    params: PageParams,
    viewer: Optional[User] = None,
    ngo_id: Optional[uuid.UUID] = None,
    status: Optional[ProgramStatus] = None,
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
):
    query = select(Program)

    own_ngo = viewer is not None and ngo_id is not None and (is_super_admin(viewer) or viewer.ngo_id == ngo_id)
    if not own_ngo:
        # Outsiders only see published programs
        query = query.where(Program.status.in_([ProgramStatus.Active, ProgramStatus.Completed]))

    if ngo_id:
        query = query.where(Program.ngo_id == ngo_id)
    if status:
        query = query.where(Program.status == status)
    if category:
        query = query.where(Program.category == category)
    if featured is not None:
        query = query.where(Program.featured.is_(featured))
    if search:
        term = f"%{search}%"
        query = query.where(or_(Program.title.ilike(term), Program.description.ilike(term)))

    query = query.order_by(Program.featured.desc(), Program.created_at.desc())
    return await paginate(session, query, params)


async def create_program(session: AsyncSession, actor: User, payload: ProgramCreate) -> Program:
    ngo_id = resolve_target_ngo(actor, payload.ngo_id)
    ngo = await get_ngo(session, ngo_id)

    program = Program(**payload.model_dump(exclude={"ngo_id"}), ngo_id=ngo.id, created_by=actor.id)
    ngo.total_programs = (ngo.total_programs or 0) + 1

    session.add_all([program, ngo])
    await session.commit()
    await session.refresh(program)
    return program


async def update_program(session: AsyncSession, actor: User, program_id: uuid.UUID, payload: ProgramUpdate) -> Program:
    program = await get_program(session, program_id)
    ensure_ngo_access(actor, program.ngo_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(program, field, value)
    if program.start_date and program.end_date and program.end_date < program.start_date:
        raise ConflictError("end_date cannot be before start_date")

    session.add(program)
    await session.commit()
    await session.refresh(program)
    return program


async def change_status(session: AsyncSession, actor: User, program_id: uuid.UUID, status: ProgramStatus) -> Program:
    program = await get_program(session, program_id)
    ensure_ngo_access(actor, program.ngo_id)

    program.change_status(status)

    session.add(program)
    await session.commit()
    await session.refresh(program)
    return program


async def set_featured(session: AsyncSession, actor: User, program_id: uuid.UUID, featured: bool) -> Program:
    program = await get_program(session, program_id)
    ensure_ngo_access(actor, program.ngo_id)

    program.featured = featured
    session.add(program)
    await session.commit()
    await session.refresh(program)
    return program


async def delete_program(session: AsyncSession, actor: User, program_id: uuid.UUID) -> None:
    program = await get_program(session, program_id)
    ensure_ngo_access(actor, program.ngo_id)

    if program.status not in (ProgramStatus.Draft, ProgramStatus.Cancelled):
        raise ConflictError("Only draft or cancelled programs can be deleted")

    ngo = await session.get(NGO, program.ngo_id)
    if ngo and ngo.total_programs:
        ngo.total_programs -= 1
        session.add(ngo)

    await session.delete(program)
    await session.commit()
