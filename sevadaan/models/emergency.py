# sevadaan/models/emergency.py

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, Uuid

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import (
    EmergencyStatus,
    EmergencyType,
    UrgencyLevel,
    VerificationStatus,
)

URGENCY_PRIORITY = {
    UrgencyLevel.Critical: 100,
    UrgencyLevel.High: 75,
    UrgencyLevel.Medium: 50,
    UrgencyLevel.Low: 25,
}


class EmergencyRequest(SQLModel, table=True):
    __tablename__ = "emergency_requests"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    # Anonymous requests are allowed
    user_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))

    name: str = Field(sa_column=Column(String(100), nullable=False))
    phone: str = Field(sa_column=Column(String(10), nullable=False))
    email: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    emergency_type: EmergencyType = Field(sa_column=enum_column(EmergencyType, "emergency_type"))
    urgency_level: UrgencyLevel = Field(
        default=UrgencyLevel.Medium,
        sa_column=enum_column(UrgencyLevel, "urgency_level")
    )
    description: str = Field(sa_column=Column(Text, nullable=False))

    address: str = Field(sa_column=Column(String, nullable=False))
    city: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    state: str = Field(sa_column=Column(String(100), nullable=False, index=True))
    pincode: str = Field(sa_column=Column(String(6), nullable=False))

    help_needed: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    estimated_cost: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    attachment_urls: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))

    # --- Lifecycle ---
    status: EmergencyStatus = Field(
        default=EmergencyStatus.Pending,
        sa_column=enum_column(EmergencyStatus, "emergency_status", index=True)
    )
    assigned_to_ngo: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))
    assigned_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    assigned_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    resolved_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    # EmergencyResolution payload
    resolution: Optional[Dict] = Field(default=None, sa_column=Column(JSON, nullable=True))

    priority: int = Field(default=50, sa_column=Column(Integer, nullable=False, default=50))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))

    # --- Verification (tracked independently of status) ---
    verification_status: VerificationStatus = Field(
        default=VerificationStatus.Pending,
        sa_column=enum_column(VerificationStatus, "emergency_verification_status")
    )
    verified_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    verification_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def refresh_priority(self) -> None:
        self.priority = URGENCY_PRIORITY.get(self.urgency_level, 50)

    # ------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------
    def assign_to_ngo(self, ngo_id: uuid.UUID, assigned_by: uuid.UUID) -> None:
        if self.status != EmergencyStatus.Pending:
            raise InvalidTransitionError(
                f"Only pending requests can be assigned (current status: '{self.status.value}')"
            )
        if not self.is_active or self.verification_status == VerificationStatus.Rejected:
            raise InvalidTransitionError("Rejected or inactive requests cannot be assigned")

        self.status = EmergencyStatus.InProgress
        self.assigned_to_ngo = ngo_id
        self.assigned_by = assigned_by
        self.assigned_at = utcnow()

    def mark_resolved(self, resolution: Dict) -> None:
        if self.status != EmergencyStatus.InProgress:
            raise InvalidTransitionError(
                f"Only in-progress requests can be resolved (current status: '{self.status.value}')"
            )

        self.status = EmergencyStatus.Resolved
        self.resolved_at = utcnow()
        self.resolution = dict(resolution)

    def verify(self, verified_by: uuid.UUID, notes: Optional[str] = None) -> None:
        if self.verification_status != VerificationStatus.Pending:
            raise InvalidTransitionError(
                f"Request verification already '{self.verification_status.value}'"
            )

        self.verification_status = VerificationStatus.Verified
        self.verified_by = verified_by
        self.verified_at = utcnow()
        self.verification_notes = notes

    def reject(self, rejected_by: uuid.UUID, notes: str) -> None:
        if not notes or not notes.strip():
            raise BadRequestError("Verification notes are required when rejecting a request")
        if self.status != EmergencyStatus.Pending:
            raise InvalidTransitionError(
                f"Only pending requests can be rejected (current status: '{self.status.value}')"
            )

        self.status = EmergencyStatus.Rejected
        self.verification_status = VerificationStatus.Rejected
        self.verified_by = rejected_by
        self.verified_at = utcnow()
        self.verification_notes = notes.strip()
        self.is_active = False

    def close(self) -> None:
        if self.status != EmergencyStatus.Resolved:
            raise InvalidTransitionError("Only resolved requests can be closed")
        self.status = EmergencyStatus.Closed
        self.is_active = False

    def resolution_hours(self) -> Optional[float]:
        if not self.resolved_at or not self.created_at:
            return None
        return (self.resolved_at - self.created_at).total_seconds() / 3600
