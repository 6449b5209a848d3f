# sevadaan/models/program.py

import uuid
from datetime import datetime, date
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, Date, Float, Integer, String, Text, Uuid

from sevadaan.core.errors import InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import ProgramStatus

# status -> statuses it may move to
PROGRAM_TRANSITIONS = {
    ProgramStatus.Draft: {ProgramStatus.Active, ProgramStatus.Cancelled},
    ProgramStatus.Active: {ProgramStatus.Completed, ProgramStatus.Suspended, ProgramStatus.Cancelled},
    ProgramStatus.Suspended: {ProgramStatus.Active, ProgramStatus.Cancelled},
    ProgramStatus.Completed: set(),
    ProgramStatus.Cancelled: set(),
}


class Program(SQLModel, table=True):
    __tablename__ = "programs"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))

    title: str = Field(sa_column=Column(String(200), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    category: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True, index=True))
    location: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    status: ProgramStatus = Field(
        default=ProgramStatus.Draft,
        sa_column=enum_column(ProgramStatus, "program_status", index=True)
    )
    featured: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))

    start_date: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))
    end_date: Optional[date] = Field(default=None, sa_column=Column(Date, nullable=True))

    target_amount: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))
    raised_amount: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))

    max_participants: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    participants_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    created_by: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def change_status(self, new_status: ProgramStatus) -> None:
        if new_status not in PROGRAM_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Program cannot move from '{self.status.value}' to '{new_status.value}'"
            )
        self.status = new_status

    @property
    def is_full(self) -> bool:
        return self.max_participants is not None and self.participants_count >= self.max_participants
