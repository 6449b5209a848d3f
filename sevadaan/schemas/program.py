from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from sevadaan.models.enums import ProgramStatus


class ProgramCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10)
    category: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_amount: float = Field(default=0, ge=0)
    max_participants: Optional[int] = Field(default=None, ge=1)
    ngo_id: Optional[UUID] = None  # super admins only; others use their own NGO

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class ProgramUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10)
    category: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    target_amount: Optional[float] = Field(default=None, ge=0)
    max_participants: Optional[int] = Field(default=None, ge=1)


class ProgramStatusChange(BaseModel):
    status: ProgramStatus


class FeatureRequest(BaseModel):
    featured: bool = True
