from typing import List, Optional

from pydantic import BaseModel, Field

from sevadaan.models.enums import RegistrationStatus, RegistrationType


class Availability(BaseModel):
    days: List[str] = []
    time_slots: List[str] = []


class RegistrationApplication(BaseModel):
    motivation: Optional[str] = Field(default=None, max_length=1000)
    skills: List[str] = []
    availability: Optional[Availability] = None
    experience: Optional[str] = Field(default=None, max_length=1000)
    special_requirements: Optional[str] = Field(default=None, max_length=500)


class RegistrationCreate(BaseModel):
    registration_type: RegistrationType = RegistrationType.Participant
    application_data: RegistrationApplication = RegistrationApplication()


class RegistrationStatusChange(BaseModel):
    status: RegistrationStatus
    notes: Optional[str] = Field(default=None, max_length=1000)


class RegistrationFeedback(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)
