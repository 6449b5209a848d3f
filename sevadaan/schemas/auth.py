from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from sevadaan.core.permissions import Role
from sevadaan.schemas.user import UserRead

SELF_REGISTER_ROLES = {Role.CITIZEN, Role.DONOR, Role.VOLUNTEER, Role.NGO_ADMIN}


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    role: Role = Role.CITIZEN

    @field_validator("role")
    @classmethod
    def self_service_role(cls, role: Role) -> Role:
        if role not in SELF_REGISTER_ROLES:
            raise ValueError(f"Role '{role.value}' cannot be self-registered")
        return role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenWithUser(TokenPair):
    user: UserRead


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str = Field(min_length=6, max_length=6)
    new_password: str = Field(min_length=8)
