from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from sevadaan.models.enums import Currency


class DonationCreate(BaseModel):
    ngo_id: UUID
    program_id: Optional[UUID] = None
    amount: float = Field(gt=0, le=10_000_000)
    currency: Currency = Currency.INR
    is_anonymous: bool = False
    message: Optional[str] = Field(default=None, max_length=500)
