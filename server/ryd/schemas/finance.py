from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, validator

from ryd.schemas.user import UserSummary

TransactionTypeLiteral = Literal["EXPENSE", "INCOME", "DONATION", "GRANT"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TransactionBase(BaseModel):
    type: TransactionTypeLiteral
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    date: datetime
    description: str = Field(..., min_length=1, max_length=2000)
    category: Optional[str] = Field(None, max_length=120)
    project_id: Optional[int] = None

    @validator("date")
    def normalize_date(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @validator("description")
    def clean_description(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Description is required")
        return cleaned


class TransactionCreate(TransactionBase):
    pass


class TransactionUpdate(BaseModel):
    type: Optional[TransactionTypeLiteral] = None
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    date: Optional[datetime] = None
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[str] = Field(None, max_length=120)
    project_id: Optional[int] = None

    @validator("date")
    def normalize_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class TransactionOut(BaseModel):
    id: int
    type: TransactionTypeLiteral
    amount: Decimal
    date: datetime
    description: str
    category: Optional[str] = None
    project_id: Optional[int] = None
    created_by: UserSummary
    created_at: datetime

    class Config:
        from_attributes = True


class FinanceStats(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    total_donations: Decimal
    total_grants: Decimal
    income_change: float
    expense_change: float
    donation_change: float
    grant_change: float
    period_start: datetime
    period_end: datetime
