# sevadaan/api/endpoints/kyc.py

import uuid
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_app_settings, get_db_session
from sevadaan.core.config import Settings
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.permissions import Role
from sevadaan.core.rate_limiter import UPLOAD_LIMIT, limiter
from sevadaan.core.rbac import AllowRoles, require_permission
from sevadaan.core.realtime import EventType, connection_manager, role_room
from sevadaan.core.responses import ok
from sevadaan.models.enums import NGOStatus
from sevadaan.models.user import User
from sevadaan.schemas.ngo import KYCDecision, NGORead
from sevadaan.services import kyc_service
from sevadaan.services.email_service import send_kyc_decision_email
from sevadaan.services.ngo_service import get_ngo, require_user_ngo
from sevadaan.services.notification_service import push_notification

router = APIRouter(prefix="/api/v1/kyc", tags=["KYC"])


# -------------------------------------------------------------------
# UPLOAD DOCUMENTS (multipart, up to 5 files per field)
# -------------------------------------------------------------------
@router.post("/documents")
@limiter.limit(UPLOAD_LIMIT)
async def upload_documents(
    request: Request,
    background_tasks: BackgroundTasks,
    pan_card: Optional[List[UploadFile]] = File(None, alias="panCard"),
    registration_certificate: Optional[List[UploadFile]] = File(None, alias="registrationCertificate"),
    bank_statement: Optional[List[UploadFile]] = File(None, alias="bankStatement"),
    certificate_80g: Optional[List[UploadFile]] = File(None, alias="80gCertificate"),
    fcra_certificate: Optional[List[UploadFile]] = File(None, alias="fcraCertificate"),
    board_resolution: Optional[List[UploadFile]] = File(None, alias="boardResolution"),
    trust_deed: Optional[List[UploadFile]] = File(None, alias="trustDeed"),
    audited_financials: Optional[List[UploadFile]] = File(None, alias="auditedFinancials"),
    ngo_photo: Optional[List[UploadFile]] = File(None, alias="ngoPhoto"),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("kyc", "create")),
):
    files = {
        "panCard": pan_card,
        "registrationCertificate": registration_certificate,
        "bankStatement": bank_statement,
        "80gCertificate": certificate_80g,
        "fcraCertificate": fcra_certificate,
        "boardResolution": board_resolution,
        "trustDeed": trust_deed,
        "auditedFinancials": audited_financials,
        "ngoPhoto": ngo_photo,
    }
    ngo, submitted = await kyc_service.submit_documents(session, settings, current_user, files)

    if submitted:
        background_tasks.add_task(
            connection_manager.emit_to_role,
            Role.SUPER_ADMIN,
            EventType.KYC_SUBMITTED,
            {"ngo_id": ngo.id, "name": ngo.name},
        )
        message = "Documents submitted for verification"
    else:
        message = "Documents uploaded. Upload the remaining required documents to submit for review."

    return ok(kyc_service.kyc_status(settings, ngo), message)


# -------------------------------------------------------------------
# STATUS (own NGO)
# -------------------------------------------------------------------
@router.get("/status")
async def kyc_status(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("kyc", "read")),
):
    ngo = await get_ngo(session, require_user_ngo(current_user))
    return ok(kyc_service.kyc_status(settings, ngo))


# -------------------------------------------------------------------
# REVIEW QUEUE (super admin)
# -------------------------------------------------------------------
@router.get("/pending")
async def pending_kyc(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(AllowRoles(Role.SUPER_ADMIN)),
):
    ngos, pagination = await kyc_service.list_pending(session, params)
    return ok([NGORead.model_validate(n) for n in ngos], pagination=pagination)


@router.post("/{ngo_id}/verify")
async def verify_kyc(
    ngo_id: uuid.UUID,
    decision: KYCDecision,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    current_user: User = Depends(require_permission("kyc", "verify")),
):
    ngo, admin, notification = await kyc_service.decide(session, current_user, ngo_id, decision)

    background_tasks.add_task(
        connection_manager.emit_to_ngo,
        ngo.id,
        EventType.KYC_DECISION,
        {"ngo_id": ngo.id, "status": ngo.status, "slug": ngo.slug, "reason": ngo.rejection_reason},
    )
    background_tasks.add_task(connection_manager.emit_dashboard_refresh, role_room(Role.SUPER_ADMIN), "kyc")
    if notification:
        background_tasks.add_task(push_notification, notification)
    if admin:
        background_tasks.add_task(send_kyc_decision_email, settings, {
            "email": admin.email,
            "name": admin.name,
            "ngo_name": ngo.name,
            "status": ngo.status.value,
            "reason": ngo.rejection_reason,
            "slug": ngo.slug,
        })

    verified = ngo.status == NGOStatus.Verified
    return ok(NGORead.model_validate(ngo), "NGO verified" if verified else "NGO KYC rejected")
