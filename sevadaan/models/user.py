# sevadaan/models/user.py

import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, Boolean, DateTime, String, Uuid

from sevadaan.core.permissions import Role
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )

    name: str = Field(nullable=False)
    email: str = Field(nullable=False, index=True, unique=True)
    password_hash: str = Field(nullable=False)

    role: Role = Field(
        default=Role.CITIZEN,
        sa_column=enum_column(Role, "user_role")
    )

    phone: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    avatar_url: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    # Tenant link for NGO_ADMIN / NGO_MANAGER accounts
    ngo_id: Optional[uuid.UUID] = Field(
        default=None,
        sa_column=Column(Uuid, index=True, nullable=True)
    )

    # Delegated "module:action" grants layered on top of the role table
    permissions: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list)
    )

    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    is_email_verified: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    last_login: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    refresh_token: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    # --- Forgot password ---
    otp_code: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    otp_expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())
