from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from typing import List
from app.schemas.settlements import Money

class ExpenseCreate(BaseModel):
    description: str = Field(min_length=1)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    paid_by: int
    participant_ids: List[int] = Field(min_length=1)
    transaction_date: date | None = None

    @field_validator("participant_ids")
    @classmethod
    def dedupe(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))

class ExpenseOut(BaseModel):
    id: int
    group_id: int
    description: str
    amount: Money
    paid_by: int
    payer_name: str | None = None
    participant_ids: List[int]
    transaction_date: date | None = None
    created_at: datetime | None = None
