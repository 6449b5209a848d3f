# sevadaan/models/volunteer.py

import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, DateTime, Float, String, Text, Uuid

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import VolunteerStatus


class VolunteerApplication(SQLModel, table=True):
    __tablename__ = "volunteer_applications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    user_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    program_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))

    status: VolunteerStatus = Field(
        default=VolunteerStatus.Pending,
        sa_column=enum_column(VolunteerStatus, "volunteer_status", index=True)
    )
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    availability: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))
    motivation: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    hours_logged: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))

    reviewed_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    review_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def review(self, reviewer_id: uuid.UUID, approve: bool, notes: Optional[str] = None) -> None:
        if self.status != VolunteerStatus.Pending:
            raise InvalidTransitionError(f"Application already '{self.status.value}'")
        self.status = VolunteerStatus.Approved if approve else VolunteerStatus.Rejected
        self.reviewed_by = reviewer_id
        self.reviewed_at = utcnow()
        self.review_notes = notes

    def withdraw(self) -> None:
        if self.status not in (VolunteerStatus.Pending, VolunteerStatus.Approved):
            raise InvalidTransitionError(f"Cannot withdraw an application that is '{self.status.value}'")
        self.status = VolunteerStatus.Withdrawn

    def log_hours(self, hours: float) -> None:
        if self.status != VolunteerStatus.Approved:
            raise InvalidTransitionError("Hours can only be logged on approved applications")
        if hours <= 0 or hours > 24:
            raise BadRequestError("Hours must be between 0 and 24 per entry")
        self.hours_logged = (self.hours_logged or 0.0) + hours

    def complete(self) -> None:
        if self.status != VolunteerStatus.Approved:
            raise InvalidTransitionError("Only approved volunteers can be marked completed")
        self.status = VolunteerStatus.Completed
