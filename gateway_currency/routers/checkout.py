from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from gateway_currency.models.order import CheckoutTotalOut, CheckoutUpdateIn
from gateway_currency.routers.deps import get_reconciler
from gateway_currency.services.money import format_amount
from gateway_currency.services.reconciler import OrderCurrencyReconciler

"""Checkout router.

    - GET /checkout/total      -> settlement equivalent of the cart (no side effects)
    - POST /checkout/updated   -> background refresh fired whenever the checkout
                                  page recalculates; bare numeric reply
"""

router = APIRouter(prefix="/checkout", tags=["checkout"])
logger = logging.getLogger(__name__)


@router.get(
    "/total",
    response_model=CheckoutTotalOut,
    summary="Settlement-currency equivalent of a cart total",
)
async def checkout_total(
    cart_total: float = Query(..., ge=0, description="Cart total in display currency"),
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    total = reconciler.checkout_total(cart_total)
    return CheckoutTotalOut(
        display_total=total.display_total,
        settlement_total=total.settlement_total,
        display_currency=total.display_currency,
        settlement_currency=total.settlement_currency,
    )


@router.post("/updated", summary="Refresh the settlement total after a checkout update")
async def checkout_updated(
    payload: CheckoutUpdateIn,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    # The page keeps its previous figure on failure; nothing is persisted here.
    try:
        total = reconciler.checkout_total(payload.cart_total)
        return {"success": True, "data": format_amount(total.settlement_total)}
    except Exception:
        logger.exception("checkout update failed")
        return {"success": False, "data": False}
