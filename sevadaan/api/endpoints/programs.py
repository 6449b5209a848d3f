# sevadaan/api/endpoints/programs.py

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session, get_optional_user
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.realtime import EventType, connection_manager
from sevadaan.core.responses import ok
from sevadaan.models.enums import ProgramStatus
from sevadaan.models.user import User
from sevadaan.schemas.program import FeatureRequest, ProgramCreate, ProgramStatusChange, ProgramUpdate
from sevadaan.services import program_service

router = APIRouter(prefix="/api/v1/programs", tags=["Programs"])


def _announce(background_tasks: BackgroundTasks, program) -> None:
    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        program.ngo_id,
        EventType.PROGRAM_UPDATED,
        {"program_id": program.id, "status": program.status, "featured": program.featured},
    )


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_program(
    payload: ProgramCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "create")),
):
    program = await program_service.create_program(session, current_user, payload)
    _announce(background_tasks, program)
    return ok(program, "Program created")


@router.get("/")
async def list_programs(
    ngo_id: Optional[uuid.UUID] = Query(None),
    program_status: Optional[ProgramStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    viewer: Optional[User] = Depends(get_optional_user),
):
    programs, pagination = await program_service.list_programs(
        session, params, viewer, ngo_id, program_status, category, featured, search
    )
    return ok(programs, pagination=pagination)


@router.get("/{program_id}")
async def get_program(
    program_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    viewer: Optional[User] = Depends(get_optional_user),
):
    program = await program_service.get_visible_program(session, program_id, viewer)
    return ok(program)


@router.put("/{program_id}")
async def update_program(
    program_id: uuid.UUID,
    payload: ProgramUpdate,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "update")),
):
    program = await program_service.update_program(session, current_user, program_id, payload)
    return ok(program, "Program updated")


@router.post("/{program_id}/status")
async def change_status(
    program_id: uuid.UUID,
    payload: ProgramStatusChange,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "update")),
):
    program = await program_service.change_status(session, current_user, program_id, payload.status)
    _announce(background_tasks, program)
    return ok(program, f"Program is now {program.status.value}")


@router.post("/{program_id}/feature")
async def feature_program(
    program_id: uuid.UUID,
    payload: FeatureRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "feature")),
):
    program = await program_service.set_featured(session, current_user, program_id, payload.featured)
    return ok(program, "Program featured" if program.featured else "Program unfeatured")


@router.delete("/{program_id}")
async def delete_program(
    program_id: uuid.UUID,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("programs", "delete")),
):
    await program_service.delete_program(session, current_user, program_id)
    return ok(message="Program deleted")
