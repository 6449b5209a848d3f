# sevadaan/models/donation.py

import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, DateTime, Float, String, Text, Uuid

from sevadaan.core.errors import InvalidTransitionError
from sevadaan.models.common import created_column, enum_column, updated_column, utcnow
from sevadaan.models.enums import Currency, PaymentStatus


class Donation(SQLModel, table=True):
    __tablename__ = "donations"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(Uuid, primary_key=True)
    )
    donor_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))
    ngo_id: uuid.UUID = Field(sa_column=Column(Uuid, nullable=False, index=True))
    program_id: Optional[uuid.UUID] = Field(default=None, sa_column=Column(Uuid, nullable=True, index=True))

    amount: float = Field(sa_column=Column(Float, nullable=False))
    currency: Currency = Field(default=Currency.INR, sa_column=enum_column(Currency, "currency"))

    payment_provider: str = Field(sa_column=Column(String(20), nullable=False))
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.Pending,
        sa_column=enum_column(PaymentStatus, "payment_status", index=True)
    )
    gateway_order_id: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True, index=True))
    gateway_payment_id: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True))

    is_anonymous: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    message: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    receipt_number: Optional[str] = Field(default=None, sa_column=Column(String, nullable=True, unique=True))
    completed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))

    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=updated_column())

    def mark_completed(self, payment_id: Optional[str]) -> bool:
        """Returns False when the donation was already completed (duplicate webhook)."""
        if self.payment_status == PaymentStatus.Completed:
            return False
        if self.payment_status not in (PaymentStatus.Pending, PaymentStatus.Processing):
            raise InvalidTransitionError(
                f"Cannot complete a donation that is '{self.payment_status.value}'"
            )
        self.payment_status = PaymentStatus.Completed
        self.gateway_payment_id = payment_id
        self.completed_at = utcnow()
        self.receipt_number = f"RCPT-{self.completed_at:%Y%m%d}-{self.id.hex[:8].upper()}"
        return True

    def mark_failed(self, payment_id: Optional[str] = None) -> None:
        if self.payment_status not in (PaymentStatus.Pending, PaymentStatus.Processing):
            raise InvalidTransitionError(
                f"Cannot fail a donation that is '{self.payment_status.value}'"
            )
        self.payment_status = PaymentStatus.Failed
        self.gateway_payment_id = payment_id

    def refund(self) -> None:
        if self.payment_status != PaymentStatus.Completed:
            raise InvalidTransitionError("Only completed donations can be refunded")
        self.payment_status = PaymentStatus.Refunded
