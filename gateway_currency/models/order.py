from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderCreateIn(BaseModel):
    cart_total: float = Field(..., ge=0, description="Cart total in display currency")
    session_key: Optional[str] = Field(None, max_length=128)
    persist: bool = Field(
        False, description="Also write the permanent totals in the same request"
    )


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    currency: str
    total: float
    display_total: Optional[float]
    converted_total: Optional[float]
    totals_status: Literal["pending", "recorded", "missing"]
    status: Literal["created", "confirmed", "partially_refunded", "refunded"]
    balance: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict, balance: Optional[float] = None) -> "OrderOut":
        return cls(
            id=row["id"],
            currency=row["currency"],
            total=row["total"],
            display_total=row["display_total"],
            converted_total=row["converted_total"],
            totals_status=row["totals_status"],
            status=row["status"],
            balance=balance,
            created_at=datetime.fromisoformat(row["created_at"].replace("Z", "")),
            updated_at=datetime.fromisoformat(row["updated_at"].replace("Z", "")),
        )


class CheckoutTotalOut(BaseModel):
    display_total: float
    settlement_total: float
    display_currency: str
    settlement_currency: str


class CheckoutUpdateIn(BaseModel):
    cart_total: float = Field(..., ge=0)


class FormattedTotalIn(BaseModel):
    formatted: str


class FormattedTotalOut(BaseModel):
    formatted: str
    substituted: bool


class TotalRowIn(BaseModel):
    key: str
    label: str
    value: str

    @field_validator("key")
    @classmethod
    def _key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("key cannot be empty")
        return value.strip()


class ItemTotalsIn(BaseModel):
    rows: List[TotalRowIn] = Field(..., min_length=1)


class ItemTotalsOut(BaseModel):
    rows: List[TotalRowIn]
