from typing import List

from fastapi import APIRouter, Depends

from gateway_currency.core.errors import OrderNotFound

from gateway_currency.models.order import (
    FormattedTotalIn,
    FormattedTotalOut,
    ItemTotalsIn,
    ItemTotalsOut,
    OrderCreateIn,
    OrderOut,
    TotalRowIn,
)
from gateway_currency.models.refund import RefundIn, RefundOut
from gateway_currency.routers.deps import get_reconciler
from gateway_currency.services.checkout_context import clear_checkout_context
from gateway_currency.services.presentation import TotalRow
from gateway_currency.services.reconciler import OrderCurrencyReconciler

router = APIRouter(prefix="/orders", tags=["orders"])


# Helpers ----------------------------------------------------------


def _order_out(reconciler: OrderCurrencyReconciler, row: dict) -> OrderOut:
    return OrderOut.from_row(row, balance=reconciler.order_balance(row["id"]))


# Routes -----------------------------------------------------------
@router.post(
    "",
    response_model=OrderOut,
    status_code=201,
    summary="Create an order from the cart and finalize its gateway total",
)
async def create_order(
    payload: OrderCreateIn,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    clear_checkout_context()
    # 1. Storefront records the order in display currency
    order_id = reconciler.create_order(payload.cart_total)
    # 2. Total finalized: generic total now in settlement currency
    reconciler.finalize_order_total(order_id, session_key=payload.session_key)
    # 3. Optionally persist the permanent totals in the same request
    if payload.persist:
        reconciler.persist_order_totals(order_id)
    return _order_out(reconciler, reconciler.db.get_order(order_id))


@router.post(
    "/{order_id}/persisted",
    response_model=OrderOut,
    summary="Order persisted: write display/converted totals",
)
async def order_persisted(
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    row = reconciler.persist_order_totals(order_id)
    return _order_out(reconciler, row)


@router.post(
    "/{order_id}/confirmation",
    response_model=OrderOut,
    summary="Order confirmation shown: reset the total to display currency",
)
async def order_confirmation(
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    row = reconciler.confirm_order(order_id)
    return _order_out(reconciler, row)


@router.get("/{order_id}", response_model=OrderOut, summary="Get an order")
async def get_order(
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    row = reconciler.db.get_order(order_id)
    if not row:
        raise OrderNotFound(order_id)
    return _order_out(reconciler, row)


@router.post(
    "/{order_id}/formatted-total",
    response_model=FormattedTotalOut,
    summary="Substitute the display total into a rendered total string",
)
async def formatted_total(
    order_id: int,
    payload: FormattedTotalIn,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    formatted, substituted = reconciler.formatted_order_total(order_id, payload.formatted)
    return FormattedTotalOut(formatted=formatted, substituted=substituted)


@router.post(
    "/{order_id}/item-totals",
    response_model=ItemTotalsOut,
    summary="Correct the itemized totals breakdown",
)
async def item_totals(
    order_id: int,
    payload: ItemTotalsIn,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    rows = [TotalRow(r.key, r.label, r.value) for r in payload.rows]
    corrected = reconciler.itemized_totals(order_id, rows)
    return ItemTotalsOut(
        rows=[TotalRowIn(key=r.key, label=r.label, value=r.value) for r in corrected]
    )


@router.post(
    "/{order_id}/refunds",
    response_model=RefundOut,
    status_code=201,
    summary="Record a gateway refund and re-express it in display currency",
)
async def create_refund(
    order_id: int,
    payload: RefundIn,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    refund = reconciler.record_gateway_refund(
        order_id, payload.amount, is_partial=payload.is_partial
    )
    return RefundOut.from_row(refund)


@router.get(
    "/{order_id}/refunds",
    response_model=List[RefundOut],
    summary="List an order's refunds",
)
async def list_refunds(
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    if reconciler.db.get_order(order_id) is None:
        raise OrderNotFound(order_id)
    return [RefundOut.from_row(r) for r in reconciler.db.list_refunds(order_id)]
