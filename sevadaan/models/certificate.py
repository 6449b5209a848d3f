# sevadaan/models/certificate.py

import secrets
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, Integer, String, Text, Uuid

from sevadaan.core.errors import InvalidTransitionError
from sevadaan.models.common import enum_column, utcnow, created_column
from sevadaan.models.enums import CertificateStatus, CertificateType


def new_certificate_id() -> str:
    return f"CERT-{utcnow():%Y}-{secrets.token_hex(4).upper()}"


def new_verification_code() -> str:
    return secrets.token_urlsafe(9)


class Certificate(SQLModel, table=True):
    __tablename__ = "certificates"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    certificate_id: str = Field(
        default_factory=new_certificate_id,
        sa_column=Column(String(40), nullable=False, unique=True, index=True)
    )
    verification_code: str = Field(
        default_factory=new_verification_code,
        sa_column=Column(String(40), nullable=False)
    )

    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    recipient_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))
    recipient_name: str = Field(sa_column=Column(String(200), nullable=False))

    certificate_type: CertificateType = Field(sa_column=enum_column(CertificateType, "certificate_type"))
    title: str = Field(sa_column=Column(String(200), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    status: CertificateStatus = Field(
        default=CertificateStatus.Active,
        sa_column=enum_column(CertificateStatus, "certificate_status")
    )
    issued_by: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))
    issued_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    download_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    verification_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    revoked_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    def effective_status(self, now: Optional[datetime] = None) -> CertificateStatus:
        now = now or utcnow()
        if self.status == CertificateStatus.Active and self.expires_at and self.expires_at <= now:
            return CertificateStatus.Expired
        return self.status

    def revoke(self, reason: str) -> None:
        if self.status == CertificateStatus.Revoked:
            raise InvalidTransitionError("Certificate already revoked")
        self.status = CertificateStatus.Revoked
        self.revoked_reason = reason
