from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from sevadaan.core.permissions import Role


# ---------------------------------------------------------
# BASE
# ---------------------------------------------------------
class UserBase(BaseModel):
    name: str
    email: EmailStr


# ---------------------------------------------------------
# CREATE USER (super admin creates any user)
# ---------------------------------------------------------
class UserCreate(UserBase):
    password: str = Field(min_length=8)
    role: Role
    phone: Optional[str] = None
    ngo_id: Optional[UUID] = None


# ---------------------------------------------------------
# UPDATE USER (super admin edits)
# ---------------------------------------------------------
class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[Role] = None
    ngo_id: Optional[UUID] = None
    is_active: Optional[bool] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    avatar_url: Optional[str] = None


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(UserBase):
    id: UUID
    role: Role
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    ngo_id: Optional[UUID] = None
    permissions: List[str] = []
    is_active: bool
    is_email_verified: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
