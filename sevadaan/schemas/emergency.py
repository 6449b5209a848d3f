from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from sevadaan.models.enums import (
    EmergencyStatus,
    EmergencyType,
    UrgencyLevel,
    VerificationStatus,
)


class EmergencyCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=r"^\d{10}$")
    email: Optional[EmailStr] = None
    emergency_type: EmergencyType
    urgency_level: UrgencyLevel = UrgencyLevel.Medium
    description: str = Field(min_length=10, max_length=1000)
    address: str = Field(min_length=3)
    city: str
    state: str
    pincode: str = Field(pattern=r"^\d{6}$")
    help_needed: List[str] = []
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    attachment_urls: List[str] = Field(default=[], max_length=5)


class EmergencyResolution(BaseModel):
    description: str = Field(min_length=3, max_length=1000)
    help_provided: List[str] = []
    cost_incurred: float = Field(default=0, ge=0)
    volunteers_involved: int = Field(default=0, ge=0)
    feedback: Optional[str] = Field(default=None, max_length=1000)


class AssignRequest(BaseModel):
    ngo_id: UUID


class VerificationRequest(BaseModel):
    notes: Optional[str] = Field(default=None, max_length=1000)


class RejectRequest(BaseModel):
    notes: str = Field(min_length=3, max_length=1000)


class EmergencyRead(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    name: str
    phone: str
    email: Optional[str] = None
    emergency_type: EmergencyType
    urgency_level: UrgencyLevel
    description: str
    address: str
    city: str
    state: str
    pincode: str
    help_needed: List[str] = []
    estimated_cost: Optional[float] = None
    attachment_urls: List[str] = []
    status: EmergencyStatus
    verification_status: VerificationStatus
    assigned_to_ngo: Optional[UUID] = None
    assigned_by: Optional[UUID] = None
    assigned_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[Dict] = None
    priority: int
    is_active: bool
    verified_at: Optional[datetime] = None
    verification_notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EmergencyPublicRead(BaseModel):
    """What anonymous / citizen callers see: no contact details of others."""
    id: UUID
    emergency_type: EmergencyType
    urgency_level: UrgencyLevel
    city: str
    state: str
    status: EmergencyStatus
    verification_status: VerificationStatus
    created_at: datetime

    class Config:
        from_attributes = True
