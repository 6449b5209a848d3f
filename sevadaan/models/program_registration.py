# sevadaan/models/program_registration.py

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import JSON, DateTime, Integer, Text, UniqueConstraint, Uuid

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import RegistrationStatus, RegistrationType

# Statuses NGO staff may move a registration into
DECISION_STATUSES = (RegistrationStatus.Approved, RegistrationStatus.Rejected, RegistrationStatus.Completed)


class ProgramRegistration(SQLModel, table=True):
    __tablename__ = "program_registrations"
    __table_args__ = (UniqueConstraint("program_id", "user_id", name="uq_program_registration_user"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    program_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    user_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))

    registration_type: RegistrationType = Field(
        default=RegistrationType.Participant,
        sa_column=enum_column(RegistrationType, "registration_type")
    )
    status: RegistrationStatus = Field(
        default=RegistrationStatus.Pending,
        sa_column=enum_column(RegistrationStatus, "registration_status", index=True)
    )
    application_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False, default=dict))

    approved_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    approved_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    review_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    feedback_rating: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    feedback_comment: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    feedback_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def decide(self, actor_id: uuid.UUID, status: RegistrationStatus, notes: Optional[str] = None) -> None:
        if status in (RegistrationStatus.Approved, RegistrationStatus.Rejected):
            if self.status != RegistrationStatus.Pending:
                raise InvalidTransitionError(f"Registration already '{self.status.value}'")
            self.approved_by = actor_id
            self.approved_at = utcnow()
        elif status == RegistrationStatus.Completed:
            if self.status != RegistrationStatus.Approved:
                raise InvalidTransitionError("Only approved registrations can be completed")
            self.completed_at = utcnow()
        else:
            raise BadRequestError(f"Cannot set registration status to '{status.value}'")
        self.status = status
        if notes is not None:
            self.review_notes = notes

    def cancel(self) -> None:
        if self.status not in (RegistrationStatus.Pending, RegistrationStatus.Approved):
            raise InvalidTransitionError(f"Cannot cancel a registration that is '{self.status.value}'")
        self.status = RegistrationStatus.Cancelled

    def add_feedback(self, rating: int, comment: Optional[str] = None) -> None:
        if self.status != RegistrationStatus.Completed:
            raise InvalidTransitionError("Feedback is only accepted once the program is completed")
        if rating < 1 or rating > 5:
            raise BadRequestError("Rating must be between 1 and 5")
        self.feedback_rating = rating
        self.feedback_comment = comment
        self.feedback_at = utcnow()
