from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RefundIn(BaseModel):
    """Refund as reported by the payment gateway (settlement currency)."""

    amount: float = Field(..., gt=0)
    is_partial: Optional[bool] = Field(
        None, description="Defaults to comparing cumulative refunds with the charged total"
    )


class RefundOut(BaseModel):
    id: int
    order_id: int
    gateway_amount: float
    amount: float
    total: float
    is_partial: bool
    reconciled: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "RefundOut":
        return cls(
            id=row["id"],
            order_id=row["order_id"],
            gateway_amount=row["gateway_amount"],
            amount=row["amount"],
            total=row["total"],
            is_partial=bool(row["is_partial"]),
            reconciled=bool(row["reconciled"]),
            created_at=datetime.fromisoformat(row["created_at"].replace("Z", "")),
            updated_at=datetime.fromisoformat(row["updated_at"].replace("Z", "")),
        )
