from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, HttpUrl

from sevadaan.models.enums import NGOStatus, NGOType


# ---------------------------------------------------------
# Typed content blocks stored on the NGO row
# ---------------------------------------------------------
class HomepageContent(BaseModel):
    hero_title: Optional[str] = Field(default=None, max_length=200)
    hero_subtitle: Optional[str] = Field(default=None, max_length=300)
    about_text: Optional[str] = Field(default=None, max_length=5000)
    highlight_program_ids: List[UUID] = []
    contact_cta: Optional[str] = Field(default=None, max_length=200)
    gallery_urls: List[HttpUrl] = Field(default=[], max_length=20)

    class Config:
        extra = "forbid"


class SeoMetadata(BaseModel):
    meta_title: Optional[str] = Field(default=None, max_length=70)
    meta_description: Optional[str] = Field(default=None, max_length=160)
    keywords: List[str] = Field(default=[], max_length=20)
    og_image_url: Optional[HttpUrl] = None

    class Config:
        extra = "forbid"


class NGOContentUpdate(BaseModel):
    homepage_content: Optional[HomepageContent] = None
    seo_metadata: Optional[SeoMetadata] = None


# ---------------------------------------------------------
# CRUD
# ---------------------------------------------------------
class NGOCreate(BaseModel):
    name: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    mission: Optional[str] = None
    vision: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(default=None, pattern=r"^\d{6}$")
    contact_email: EmailStr
    contact_phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    website: Optional[HttpUrl] = None
    registration_number: str = Field(min_length=3, max_length=100)
    ngo_type: NGOType = NGOType.Trust


class NGOUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    mission: Optional[str] = None
    vision: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(default=None, pattern=r"^\d{6}$")
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    website: Optional[HttpUrl] = None
    logo_url: Optional[str] = None


class NGORead(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    mission: Optional[str] = None
    vision: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    contact_email: str
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    registration_number: str
    ngo_type: NGOType
    status: NGOStatus
    is_verified: bool
    verification_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    slug: Optional[str] = None
    admin_id: Optional[UUID] = None
    homepage_content: Dict = {}
    seo_metadata: Dict = {}
    total_programs: int = 0
    total_volunteers: int = 0
    total_donations_amount: float = 0.0
    created_at: datetime

    class Config:
        from_attributes = True


class SuspendRequest(BaseModel):
    reason: Optional[str] = None


# ---------------------------------------------------------
# KYC
# ---------------------------------------------------------
class KYCDecision(BaseModel):
    status: NGOStatus
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
