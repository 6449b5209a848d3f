# sevadaan/models/grant.py

import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, Float, String, Text, Uuid

from sevadaan.core.errors import BadRequestError, InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import GrantStatus


class Grant(SQLModel, table=True):
    __tablename__ = "grants"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))

    title: str = Field(sa_column=Column(String(200), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    funder: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))

    requested_amount: float = Field(sa_column=Column(Float, nullable=False))
    approved_amount: Optional[float] = Field(default=None, sa_column=Column(Float, nullable=True))
    disbursed_amount: float = Field(default=0.0, sa_column=Column(Float, nullable=False, default=0.0))

    status: GrantStatus = Field(
        default=GrantStatus.Draft,
        sa_column=enum_column(GrantStatus, "grant_status", index=True)
    )
    submitted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    reviewed_by: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True))
    reviewed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    review_notes: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    created_by: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def _expect(self, *allowed: GrantStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(f"Grant is '{self.status.value}'")

    def submit(self) -> None:
        self._expect(GrantStatus.Draft)
        self.status = GrantStatus.Submitted
        self.submitted_at = utcnow()

    def start_review(self, reviewer_id: uuid.UUID) -> None:
        self._expect(GrantStatus.Submitted)
        self.status = GrantStatus.UnderReview
        self.reviewed_by = reviewer_id

    def decide(self, reviewer_id: uuid.UUID, approve: bool, approved_amount: Optional[float], notes: Optional[str]) -> None:
        self._expect(GrantStatus.Submitted, GrantStatus.UnderReview)
        if approve:
            amount = approved_amount if approved_amount is not None else self.requested_amount
            if amount <= 0 or amount > self.requested_amount:
                raise BadRequestError("Approved amount must be positive and not exceed the requested amount")
            self.approved_amount = amount
            self.status = GrantStatus.Approved
        else:
            self.status = GrantStatus.Rejected
        self.reviewed_by = reviewer_id
        self.reviewed_at = utcnow()
        self.review_notes = notes

    def disburse(self, amount: float) -> None:
        self._expect(GrantStatus.Approved, GrantStatus.Disbursed)
        if amount <= 0:
            raise BadRequestError("Disbursement amount must be positive")
        if self.disbursed_amount + amount > (self.approved_amount or 0):
            raise BadRequestError("Disbursement exceeds the approved amount")
        self.disbursed_amount += amount
        self.status = GrantStatus.Completed if self.disbursed_amount >= self.approved_amount else GrantStatus.Disbursed
