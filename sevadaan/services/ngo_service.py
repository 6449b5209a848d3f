# sevadaan/services/ngo_service.py

import uuid
from typing import Optional

from sqlalchemy import or_
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.core.permissions import Role
from sevadaan.models.ngo import NGO
from sevadaan.models.user import User
from sevadaan.schemas.ngo import NGOContentUpdate, NGOCreate, NGOUpdate
from sevadaan.services.audit_service import record_audit


# ===================================================================
# TENANCY HELPERS
# ===================================================================
def is_super_admin(user: User) -> bool:
    return user.role == Role.SUPER_ADMIN


def require_user_ngo(user: User) -> uuid.UUID:
    if not user.ngo_id:
        raise BadRequestError("Your account is not linked to an NGO")
    return user.ngo_id


def ensure_ngo_access(user: User, ngo_id: uuid.UUID) -> None:
    """Super admins reach every NGO; everyone else only their own."""
    if is_super_admin(user):
        return
    if user.ngo_id != ngo_id:
        raise ForbiddenError("You do not have access to this NGO")


def resolve_target_ngo(user: User, requested: Optional[uuid.UUID]) -> uuid.UUID:
    if is_super_admin(user):
        if not requested:
            raise BadRequestError("ngo_id is required")
        return requested
    own = require_user_ngo(user)
    if requested and requested != own:
        raise ForbiddenError("You do not have access to this NGO")
    return own


# ===================================================================
# READS
# ===================================================================
async def get_ngo(session: AsyncSession, ngo_id: uuid.UUID) -> NGO:
    ngo = await session.get(NGO, ngo_id)
    if not ngo:
        raise NotFoundError("NGO not found")
    return ngo


async def get_visible_ngo(session: AsyncSession, ngo_id: uuid.UUID, viewer: Optional[User]) -> NGO:
    ngo = await get_ngo(session, ngo_id)
    if ngo.is_verified:
        return ngo
    # Unverified NGOs are only visible to their own staff and super admins
    if viewer and (is_super_admin(viewer) or viewer.ngo_id == ngo.id):
        return ngo
    raise NotFoundError("NGO not found")


async def get_ngo_by_slug(session: AsyncSession, slug: str) -> NGO:
    result = await session.execute(
        select(NGO).where((NGO.slug == slug) & (NGO.is_verified.is_(True)))
    )
    ngo = result.scalar_one_or_none()
    if not ngo:
        raise NotFoundError("NGO not found")
    return ngo


async def list_public_ngos(
    session: AsyncSession,
    params: PageParams,
    city: Optional[str] = None,
    state: Optional[str] = None,
    search: Optional[str] = None,
):
    query = select(NGO).where(NGO.is_verified.is_(True))
    if city:
        query = query.where(NGO.city.ilike(city))
    if state:
        query = query.where(NGO.state.ilike(state))
    if search:
        term = f"%{search}%"
        query = query.where(or_(NGO.name.ilike(term), NGO.description.ilike(term)))
    query = query.order_by(NGO.name)
    return await paginate(session, query, params)


# ===================================================================
# WRITES
# ===================================================================
def _column_values(data: dict) -> dict:
    if data.get("website") is not None:
        data["website"] = str(data["website"])
    return data


async def create_ngo(session: AsyncSession, admin: User, payload: NGOCreate) -> NGO:
    if admin.ngo_id:
        raise ConflictError("Your account already manages an NGO")

    duplicate = await session.execute(
        select(NGO.id).where(NGO.registration_number == payload.registration_number)
    )
    if duplicate.scalar_one_or_none():
        raise ConflictError("An NGO with this registration number already exists")

    ngo = NGO(**_column_values(payload.model_dump()), admin_id=admin.id)
    session.add(ngo)
    await session.flush()

    admin.ngo_id = ngo.id
    session.add(admin)
    record_audit(session, admin, "NGO_CREATED", "ngo", ngo.id, details={"name": ngo.name})

    await session.commit()
    await session.refresh(ngo)
    return ngo


async def update_ngo(session: AsyncSession, actor: User, ngo_id: uuid.UUID, payload: NGOUpdate) -> NGO:
    ngo = await get_ngo(session, ngo_id)
    ensure_ngo_access(actor, ngo.id)

    for field, value in _column_values(payload.model_dump(exclude_unset=True)).items():
        setattr(ngo, field, value)

    session.add(ngo)
    await session.commit()
    await session.refresh(ngo)
    return ngo


async def update_content(session: AsyncSession, actor: User, ngo_id: uuid.UUID, payload: NGOContentUpdate) -> NGO:
    ngo = await get_ngo(session, ngo_id)
    ensure_ngo_access(actor, ngo.id)

    if payload.homepage_content is not None:
        ngo.homepage_content = payload.homepage_content.model_dump(mode="json", exclude_none=True)
    if payload.seo_metadata is not None:
        ngo.seo_metadata = payload.seo_metadata.model_dump(mode="json", exclude_none=True)

    session.add(ngo)
    await session.commit()
    await session.refresh(ngo)
    return ngo


async def suspend_ngo(session: AsyncSession, actor: User, ngo_id: uuid.UUID, reason: Optional[str]) -> NGO:
    ngo = await get_ngo(session, ngo_id)
    ngo.suspend(reason)

    session.add(ngo)
    record_audit(session, actor, "NGO_SUSPENDED", "ngo", ngo.id, remarks=reason)
    await session.commit()
    await session.refresh(ngo)
    return ngo
