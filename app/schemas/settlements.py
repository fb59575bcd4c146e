from decimal import Decimal
from typing import Annotated
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)
from app.core.utils import to_decimal

# Decimal internally, JSON number on the wire
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


def _as_id(value):
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class User(BaseModel):
    """
    Participant identity. Accepts `id`, `_id`, `user_id` or `userId`;
    numeric ids are kept as their string form.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id", "user_id", "userId"))
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _as_id(v)


class Expense(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "_id", "expense_id", "expenseId"),
    )
    description: str | None = None
    amount: Decimal
    payer_id: str = Field(
        validation_alias=AliasChoices(
            "payer_id", "payerId", "paidById", "paid_by_id", "paid_by"
        )
    )
    participant_ids: tuple[str, ...] = Field(
        validation_alias=AliasChoices(
            "participant_ids", "participantIds", "participants"
        )
    )

    @field_validator("id", "payer_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        return _as_id(v)

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v):
        return to_decimal(v)

    @field_validator("amount")
    @classmethod
    def non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Expense amount must be a finite number")
        if v < 0:
            raise ValueError("Expense amount must be non-negative")
        return v

    @field_validator("participant_ids", mode="before")
    @classmethod
    def unique_participants(cls, v):
        if isinstance(v, (str, bytes)) or not hasattr(v, "__iter__"):
            raise ValueError("participant_ids must be a list of user ids")

        seen = []
        for pid in v:
            pid = _as_id(pid)
            if pid not in seen:
                seen.append(pid)

        if not seen:
            raise ValueError("An expense needs at least one participant")
        return tuple(seen)


class Settlement(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_id: str
    from_name: str | None
    to_id: str
    to_name: str | None
    amount: Money


class NetBalance(BaseModel):
    user_id: str
    name: str | None = None
    amount: Money


class SettlementRequest(BaseModel):
    users: list[User]
    expenses: list[Expense] = []


class GroupBalanceOut(BaseModel):
    group_id: int
    net: list[NetBalance]
    settlements: list[Settlement]
    is_settled: bool
