# sevadaan/services/certificate_service.py

import uuid

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.errors import NotFoundError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.models.certificate import Certificate
from sevadaan.models.ngo import NGO
from sevadaan.models.user import User
from sevadaan.schemas.certificate import CertificateIssue
from sevadaan.services.audit_service import record_audit
from sevadaan.services.ngo_service import ensure_ngo_access, get_ngo, require_user_ngo


async def issue_certificate(session: AsyncSession, actor: User, payload: CertificateIssue) -> Certificate:
    ngo = await get_ngo(session, require_user_ngo(actor))

    if payload.recipient_id and not await session.get(User, payload.recipient_id):
        raise NotFoundError("Recipient not found")

    certificate = Certificate(**payload.model_dump(), ngo_id=ngo.id, issued_by=actor.id)
    session.add(certificate)
    await session.commit()
    await session.refresh(certificate)
    return certificate


async def list_mine(session: AsyncSession, user: User, params: PageParams):
    query = (
        select(Certificate)
        .where(Certificate.recipient_id == user.id)
        .order_by(Certificate.issued_at.desc())
    )
    return await paginate(session, query, params)


async def list_for_ngo(session: AsyncSession, actor: User, params: PageParams):
    query = (
        select(Certificate)
        .where(Certificate.ngo_id == require_user_ngo(actor))
        .order_by(Certificate.issued_at.desc())
    )
    return await paginate(session, query, params)


async def verify_certificate(session: AsyncSession, certificate_id: str) -> dict:
    """Public lookup by the printed certificate id. Each lookup is counted."""
    result = await session.execute(
        select(Certificate).where(Certificate.certificate_id == certificate_id.strip().upper())
    )
    certificate = result.scalars().first()
    if not certificate:
        raise NotFoundError("Certificate not found")

    certificate.verification_count = (certificate.verification_count or 0) + 1
    session.add(certificate)
    await session.commit()
    await session.refresh(certificate)

    ngo = await session.get(NGO, certificate.ngo_id)
    status = certificate.effective_status()
    return {
        "certificate_id": certificate.certificate_id,
        "valid": status.value == "active",
        "status": status,
        "recipient_name": certificate.recipient_name,
        "certificate_type": certificate.certificate_type,
        "title": certificate.title,
        "ngo_name": ngo.name if ngo else None,
        "issued_at": certificate.issued_at,
        "expires_at": certificate.expires_at,
        "revoked_reason": certificate.revoked_reason,
        "verification_count": certificate.verification_count,
    }


async def revoke_certificate(session: AsyncSession, actor: User, certificate_pk: uuid.UUID, reason: str) -> Certificate:
    certificate = await session.get(Certificate, certificate_pk)
    if not certificate:
        raise NotFoundError("Certificate not found")
    ensure_ngo_access(actor, certificate.ngo_id)

    certificate.revoke(reason)
    session.add(certificate)
    record_audit(session, actor, "CERTIFICATE_REVOKED", "certificate", certificate.id, remarks=reason)
    await session.commit()
    await session.refresh(certificate)
    return certificate
