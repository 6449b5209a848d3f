from typing import Optional

from pydantic import BaseModel, Field


class GrantCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10)
    funder: Optional[str] = None
    requested_amount: float = Field(gt=0)


class GrantDecision(BaseModel):
    approve: bool
    approved_amount: Optional[float] = Field(default=None, gt=0)
    notes: Optional[str] = None


class DisbursementRequest(BaseModel):
    amount: float = Field(gt=0)
