from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from sevadaan.models.common import to_naive_utc
from sevadaan.models.enums import AnnouncementPriority, AnnouncementType, ApprovalStatus


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    content: str = Field(min_length=1, max_length=5000)
    type: AnnouncementType = AnnouncementType.General
    priority: AnnouncementPriority = AnnouncementPriority.Medium
    target_audience: List[str] = ["all"]
    tags: List[str] = []
    published_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator("published_at", "expiry_date")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    type: Optional[AnnouncementType] = None
    priority: Optional[AnnouncementPriority] = None
    target_audience: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    published_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator("published_at", "expiry_date")
    @classmethod
    def as_naive_utc(cls, value):
        return to_naive_utc(value)


class ApprovalDecision(BaseModel):
    approve: bool
    comments: Optional[str] = Field(default=None, max_length=1000)


class AnnouncementRead(BaseModel):
    id: UUID
    ngo_id: UUID
    title: str
    content: str
    type: AnnouncementType
    priority: AnnouncementPriority
    target_audience: List[str]
    tags: List[str] = []
    approval_status: ApprovalStatus
    is_active: bool
    published_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    approval_comments: Optional[str] = None
    view_count: int = 0
    created_by: UUID
    created_at: datetime

    class Config:
        from_attributes = True
