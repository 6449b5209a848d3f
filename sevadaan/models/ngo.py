# sevadaan/models/ngo.py

import re
import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, Uuid

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import NGOStatus, NGOType

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]")


def generate_slug(name: str, ngo_id) -> str:
    """
    Public page slug: the lowercased name with every character outside
    [a-z0-9] replaced by "-", followed by the last 6 characters of the id.
    """
    suffix = str(ngo_id).replace("-", "")[-6:]
    return f"{_NON_SLUG_CHARS.sub('-', name.lower())}-{suffix}"


class NGO(SQLModel, table=True):
    __tablename__ = "ngos"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    name: str = Field(sa_column=Column(String(200), nullable=False, index=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    mission: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    vision: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    address: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    city: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True, index=True))
    state: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True, index=True))
    pincode: Optional[str] = Field(default=None, sa_column=Column(String(6), nullable=True))

    contact_email: str = Field(sa_column=Column(String, nullable=False))
    contact_phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    website: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    logo_url: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    registration_number: str = Field(sa_column=Column(String(100), nullable=False, unique=True))
    ngo_type: NGOType = Field(default=NGOType.Trust, sa_column=enum_column(NGOType, "ngo_type"))

    # --- KYC / verification ---
    status: NGOStatus = Field(default=NGOStatus.Pending, sa_column=enum_column(NGOStatus, "ngo_status"))
    is_verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    verification_date: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    verification_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    slug: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True, unique=True))

    # {"panCard": ["path", ...], ...}
    kyc_documents: Dict[str, List[str]] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))
    kyc_submitted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    admin_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))

    # Validated HomepageContent / SeoMetadata payloads
    homepage_content: Dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))
    seo_metadata: Dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))

    # --- Counters ---
    total_programs: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    total_volunteers: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    total_donations_amount: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    # ------------------------------------------------------------
    # KYC transitions
    # ------------------------------------------------------------
    def submit_documents(self, documents: Dict[str, List[str]], required: Iterable[str] = ()) -> bool:
        """
        Merges newly uploaded document paths (a re-upload replaces that
        document type). Once every required type is present the NGO moves
        to documents_submitted; returns whether that happened.
        """
        if self.status not in (NGOStatus.Pending, NGOStatus.DocumentsSubmitted, NGOStatus.Rejected):
            raise InvalidTransitionError(f"Cannot submit KYC documents while NGO is '{self.status.value}'")

        merged = {key: list(paths) for key, paths in (self.kyc_documents or {}).items()}
        for doc_type, paths in documents.items():
            merged[doc_type] = list(paths)
        self.kyc_documents = merged

        if any(not merged.get(doc_type) for doc_type in required):
            return False

        self.status = NGOStatus.DocumentsSubmitted
        self.rejection_reason = None
        self.kyc_submitted_at = utcnow()
        return True

    def mark_verified(self, notes: Optional[str] = None) -> None:
        if self.status != NGOStatus.DocumentsSubmitted:
            raise InvalidTransitionError(f"Cannot verify an NGO in '{self.status.value}' state")

        self.status = NGOStatus.Verified
        self.is_verified = True
        self.verification_date = utcnow()
        self.verification_notes = notes
        self.rejection_reason = None
        self.slug = generate_slug(self.name, self.id)

    def mark_rejected(self, reason: str, notes: Optional[str] = None) -> None:
        if self.status != NGOStatus.DocumentsSubmitted:
            raise InvalidTransitionError(f"Cannot reject an NGO in '{self.status.value}' state")
        if not reason or not reason.strip():
            raise BadRequestError("A rejection reason is required")

        self.status = NGOStatus.Rejected
        self.is_verified = False
        self.rejection_reason = reason.strip()
        self.verification_notes = notes

    def suspend(self, reason: Optional[str] = None) -> None:
        if self.status == NGOStatus.Suspended:
            raise InvalidTransitionError("NGO is already suspended")
        self.status = NGOStatus.Suspended
        self.is_verified = False
        self.verification_notes = reason
