from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from sevadaan.models.common import to_naive_utc
from sevadaan.models.enums import CertificateType


class CertificateIssue(BaseModel):
    recipient_id: Optional[UUID] = None
    recipient_name: str = Field(min_length=2, max_length=200)
    certificate_type: CertificateType
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)


class RevokeRequest(BaseModel):
    reason: str = Field(min_length=3, max_length=500)
