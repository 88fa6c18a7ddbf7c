"""Pydantic request/response models for the reconciler API."""

from .constants import (
    ORDER_STATUSES,
    TOTALS_STATUSES,
    ALLOWED_TRANSITIONS,
    ADDENDUM_SURFACES,
)  # re-export
from .order import (
    OrderCreateIn,
    OrderOut,
    CheckoutTotalOut,
    CheckoutUpdateIn,
    FormattedTotalIn,
    FormattedTotalOut,
    TotalRowIn,
    ItemTotalsIn,
    ItemTotalsOut,
)
from .refund import RefundIn, RefundOut

__all__ = [
    "ORDER_STATUSES",
    "TOTALS_STATUSES",
    "ALLOWED_TRANSITIONS",
    "ADDENDUM_SURFACES",
    "OrderCreateIn",
    "OrderOut",
    "CheckoutTotalOut",
    "CheckoutUpdateIn",
    "FormattedTotalIn",
    "FormattedTotalOut",
    "TotalRowIn",
    "ItemTotalsIn",
    "ItemTotalsOut",
    "RefundIn",
    "RefundOut",
]
