from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class VolunteerApply(BaseModel):
    ngo_id: UUID
    program_id: Optional[UUID] = None
    skills: List[str] = []
    availability: Optional[str] = None
    motivation: Optional[str] = Field(default=None, max_length=2000)


class VolunteerReview(BaseModel):
    approve: bool
    notes: Optional[str] = Field(default=None, max_length=1000)


class HoursLog(BaseModel):
    hours: float = Field(gt=0, le=24)
