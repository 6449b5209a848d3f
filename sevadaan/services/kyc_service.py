# sevadaan/services/kyc_service.py

import uuid
from typing import Dict, List, Optional

from fastapi import UploadFile
from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.core.config import Settings
from sevadaan.core.errors import BadRequestError
from sevadaan.core.pagination import PageParams, paginate
from sevadaan.core.storage import get_signed_url, store_upload
from sevadaan.models.enums import NGOStatus, NotificationType
from sevadaan.models.ngo import NGO
from sevadaan.models.notification import Notification
from sevadaan.models.user import User
from sevadaan.schemas.ngo import KYCDecision
from sevadaan.services.audit_service import record_audit
from sevadaan.services.ngo_service import get_ngo, require_user_ngo
from sevadaan.services.notification_service import create_notification

# Multipart field names accepted by the upload endpoint
REQUIRED_DOCUMENTS = ("panCard", "registrationCertificate", "bankStatement")
OPTIONAL_DOCUMENTS = (
    "80gCertificate",
    "fcraCertificate",
    "boardResolution",
    "trustDeed",
    "auditedFinancials",
    "ngoPhoto",
)
DOCUMENT_FIELDS = REQUIRED_DOCUMENTS + OPTIONAL_DOCUMENTS
MAX_FILES_PER_FIELD = 5


# ---------------------------------------------------------
# UPLOAD
# ---------------------------------------------------------
async def submit_documents(
    session: AsyncSession,
    settings: Settings,
    actor: User,
    files: Dict[str, List[UploadFile]],
) -> tuple[NGO, bool]:
    """
    Stores the uploaded files and records them on the actor's NGO.
    Returns (ngo, submitted) where submitted tells whether the upload
    completed the required set and moved the NGO to review.
    """
    ngo = await get_ngo(session, require_user_ngo(actor))

    files = {field: uploads for field, uploads in files.items() if uploads}
    if not files:
        raise BadRequestError("No documents were uploaded")

    unknown = [field for field in files if field not in DOCUMENT_FIELDS]
    if unknown:
        raise BadRequestError(f"Unknown document types: {', '.join(sorted(unknown))}")

    for field, uploads in files.items():
        if len(uploads) > MAX_FILES_PER_FIELD:
            raise BadRequestError(f"At most {MAX_FILES_PER_FIELD} files are allowed for {field}")

    stored: Dict[str, List[str]] = {}
    for field, uploads in files.items():
        stored[field] = [
            await store_upload(settings, upload, f"kyc/{ngo.id}/{field}")
            for upload in uploads
        ]

    submitted = ngo.submit_documents(stored, REQUIRED_DOCUMENTS)
    session.add(ngo)
    record_audit(
        session, actor, "KYC_DOCUMENTS_UPLOADED", "ngo", ngo.id,
        details={"documents": sorted(stored), "submitted": submitted},
    )
    await session.commit()
    await session.refresh(ngo)

    logger.info(f"KYC upload for NGO {ngo.id}: {sorted(stored)} (submitted={submitted})")
    return ngo, submitted


# ---------------------------------------------------------
# STATUS
# ---------------------------------------------------------
def kyc_status(settings: Settings, ngo: NGO) -> dict:
    documents = ngo.kyc_documents or {}

    def describe(fields):
        return [
            {
                "field": field,
                "uploaded": bool(documents.get(field)),
                "files": [get_signed_url(settings, path) for path in documents.get(field, [])],
            }
            for field in fields
        ]

    return {
        "ngo_id": ngo.id,
        "status": ngo.status,
        "is_verified": ngo.is_verified,
        "rejection_reason": ngo.rejection_reason,
        "submitted_at": ngo.kyc_submitted_at,
        "verification_date": ngo.verification_date,
        "required_documents": describe(REQUIRED_DOCUMENTS),
        "optional_documents": describe(OPTIONAL_DOCUMENTS),
        "missing_documents": [field for field in REQUIRED_DOCUMENTS if not documents.get(field)],
    }


async def list_pending(session: AsyncSession, params: PageParams):
    query = (
        select(NGO)
        .where(NGO.status == NGOStatus.DocumentsSubmitted)
        .order_by(NGO.kyc_submitted_at.asc())
    )
    return await paginate(session, query, params)


# ---------------------------------------------------------
# DECISION
# ---------------------------------------------------------
async def decide(
    session: AsyncSession,
    actor: User,
    ngo_id: uuid.UUID,
    decision: KYCDecision,
) -> tuple[NGO, Optional[User], Optional[Notification]]:
    ngo = await get_ngo(session, ngo_id)

    if decision.status == NGOStatus.Verified:
        ngo.mark_verified(decision.notes)
    elif decision.status == NGOStatus.Rejected:
        ngo.mark_rejected(decision.rejection_reason or "", decision.notes)
    else:
        raise BadRequestError("Decision must be 'verified' or 'rejected'")

    session.add(ngo)
    record_audit(
        session, actor, f"KYC_{ngo.status.value.upper()}", "ngo", ngo.id,
        remarks=decision.rejection_reason or decision.notes,
        details={"slug": ngo.slug},
    )

    admin = await session.get(User, ngo.admin_id) if ngo.admin_id else None
    notification = None
    if admin:
        verified = ngo.status == NGOStatus.Verified
        notification = await create_notification(
            session,
            admin.id,
            title="KYC verified" if verified else "KYC rejected",
            message=(
                f"{ngo.name} has been verified."
                if verified
                else f"KYC for {ngo.name} was rejected: {ngo.rejection_reason}"
            ),
            type=NotificationType.KYC,
            action_url=f"/ngo/{ngo.slug}" if verified else "/dashboard/kyc",
        )

    await session.commit()
    await session.refresh(ngo)
    return ngo, admin, notification
