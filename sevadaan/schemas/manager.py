from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class ManagerCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8)
    phone: Optional[str] = Field(default=None, pattern=r"^\d{10}$")
    permissions: List[str] = []


class ManagerUpdate(BaseModel):
    permissions: Optional[List[str]] = None
    is_active: Optional[bool] = None
