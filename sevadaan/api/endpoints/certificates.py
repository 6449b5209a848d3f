# sevadaan/api/endpoints/certificates.py

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_current_user, get_db_session
from sevadaan.core.pagination import PageParams, page_params
from sevadaan.core.rbac import require_permission
from sevadaan.core.responses import ok
from sevadaan.models.enums import NotificationType
from sevadaan.models.user import User
from sevadaan.schemas.certificate import CertificateIssue, RevokeRequest
from sevadaan.services import certificate_service
from sevadaan.services.notification_service import create_notification, push_notification

router = APIRouter(prefix="/api/v1/certificates", tags=["Certificates"])


@router.post("/", status_code=status.HTTP_201_CREATED)
async def issue_certificate(
    payload: CertificateIssue,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("certificates", "issue")),
):
    certificate = await certificate_service.issue_certificate(session, current_user, payload)

    if certificate.recipient_id:
        notification = await create_notification(
            session,
            certificate.recipient_id,
            title="New certificate",
            message=f"You have received a certificate: {certificate.title}",
            type=NotificationType.Certificate,
            action_url=f"/certificates/verify/{certificate.certificate_id}",
        )
        await session.commit()
        background_tasks.add_task(push_notification, notification)

    return ok(certificate, "Certificate issued")


@router.get("/mine")
async def my_certificates(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    certificates, pagination = await certificate_service.list_mine(session, current_user, params)
    return ok(certificates, pagination=pagination)


@router.get("/ngo")
async def ngo_certificates(
    params: PageParams = Depends(page_params),
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("certificates", "read")),
):
    certificates, pagination = await certificate_service.list_for_ngo(session, current_user, params)
    return ok(certificates, pagination=pagination)


# Public: anyone holding a printed certificate can check it
@router.get("/verify/{certificate_id}")
async def verify_certificate(certificate_id: str, session: AsyncSession = Depends(get_db_session)):
    result = await certificate_service.verify_certificate(session, certificate_id)
    return ok(result)


@router.post("/{certificate_pk}/revoke")
async def revoke_certificate(
    certificate_pk: uuid.UUID,
    payload: RevokeRequest,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("certificates", "update")),
):
    certificate = await certificate_service.revoke_certificate(session, current_user, certificate_pk, payload.reason)
    return ok(certificate, "Certificate revoked")
