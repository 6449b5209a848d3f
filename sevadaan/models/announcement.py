# sevadaan/models/announcement.py

import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, Uuid

from sevadaan.core.errors import InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import AnnouncementPriority, AnnouncementType, ApprovalStatus


class Announcement(SQLModel, table=True):
    __tablename__ = "announcements"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))

    title: str = Field(sa_column=Column(String(200), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    type: AnnouncementType = Field(
        default=AnnouncementType.General,
        sa_column=enum_column(AnnouncementType, "announcement_type")
    )
    priority: AnnouncementPriority = Field(
        default=AnnouncementPriority.Medium,
        sa_column=enum_column(AnnouncementPriority, "announcement_priority")
    )
    # Role names, or ["all"]
    target_audience: List[str] = Field(
        default_factory=lambda: ["all"],
        sa_column=Column(JSON, nullable=False)
    )
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))

    approval_status: ApprovalStatus = Field(
        default=ApprovalStatus.Draft,
        sa_column=enum_column(ApprovalStatus, "approval_status", index=True)
    )
    is_active: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    published_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    expiry_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    approved_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    approved_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    approval_comments: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    view_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    created_by: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))
    updated_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    # ------------------------------------------------------------
    # Approval flow
    # ------------------------------------------------------------
    def submit_for_approval(self) -> None:
        if self.approval_status not in (ApprovalStatus.Draft, ApprovalStatus.Rejected):
            raise InvalidTransitionError(
                f"Cannot submit an announcement that is '{self.approval_status.value}'"
            )
        self.approval_status = ApprovalStatus.PendingApproval
        self.is_active = False

    def approve(self, approver_id: uuid.UUID, comments: Optional[str] = None) -> None:
        self._require_pending()

        now = utcnow()
        self.approval_status = ApprovalStatus.Approved
        self.is_active = True
        self.approved_by = approver_id
        self.approved_at = now
        self.approval_comments = comments
        if self.published_at is None or self.published_at > now:
            self.published_at = now

    def reject(self, approver_id: uuid.UUID, comments: Optional[str] = None) -> None:
        self._require_pending()

        self.approval_status = ApprovalStatus.Rejected
        self.is_active = False
        self.approved_by = approver_id
        self.approved_at = utcnow()
        self.approval_comments = comments

    def _require_pending(self) -> None:
        if self.approval_status != ApprovalStatus.PendingApproval:
            raise InvalidTransitionError(
                f"Announcement is '{self.approval_status.value}', not pending approval"
            )

    def is_visible_to(self, role: Optional[str], now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        if not self.is_active or self.approval_status != ApprovalStatus.Approved:
            return False
        if self.expiry_date and self.expiry_date <= now:
            return False
        audience = self.target_audience or ["all"]
        return "all" in audience or (role is not None and role in audience)
