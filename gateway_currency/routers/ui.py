from typing import List

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from gateway_currency.core.errors import OrderNotFound
from gateway_currency.routers.deps import get_reconciler
from gateway_currency.services.presentation import TEMPLATES_DIR, TotalRow, markup
from gateway_currency.services.reconciler import OrderCurrencyReconciler

router = APIRouter(prefix="/ui", tags=["ui"])

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _require_order(reconciler: OrderCurrencyReconciler, order_id: int) -> dict:
    order = reconciler.db.get_order(order_id)
    if order is None:
        raise OrderNotFound(order_id)
    return order


def _storefront_rows(
    reconciler: OrderCurrencyReconciler, order: dict
) -> List[TotalRow]:
    """Rows as the storefront renders them, straight from the generic fields."""
    rows = [
        TotalRow(
            "cart_subtotal",
            "Subtotal:",
            reconciler.display_price(order["display_total"] or order["total"]).render(),
        )
    ]
    for idx, refund in enumerate(reconciler.db.list_refunds(order["id"])):
        rows.append(
            TotalRow(
                f"refund_{idx}",
                "Refund:",
                reconciler.display_price(refund["total"]).render(),
            )
        )
    rows.append(
        TotalRow("order_total", "Total:", reconciler.display_price(order["total"]).render())
    )
    return rows


def _render_rows(rows: List[TotalRow]) -> List[dict]:
    return [{"label": r.label, "value": markup(r.value)} for r in rows]


@router.get("/checkout", response_class=HTMLResponse)
async def checkout_box(
    request: Request,
    cart_total: float = Query(..., ge=0),
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    return templates.TemplateResponse(
        request,
        "checkout.html",
        {"box": markup(reconciler.checkout_box(cart_total))},
    )


@router.get("/orders/{order_id}/received", response_class=HTMLResponse)
async def order_received(
    request: Request,
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    order = _require_order(reconciler, order_id)
    # Rendered before the confirmation event runs, so the generic total may
    # still be the settlement amount.
    rendered = reconciler.display_price(order["total"]).render()
    formatted, _ = reconciler.formatted_order_total(order_id, rendered)
    reconciler.confirm_order(order_id)
    return templates.TemplateResponse(
        request,
        "order_received.html",
        {"order": order, "total": markup(formatted)},
    )


@router.get("/orders/{order_id}", response_class=HTMLResponse)
async def customer_order_view(
    request: Request,
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    order = _require_order(reconciler, order_id)
    rows = reconciler.itemized_totals(order_id, _storefront_rows(reconciler, order))
    return templates.TemplateResponse(
        request,
        "order_view.html",
        {
            "order": order,
            "rows": _render_rows(rows),
            "addendum": markup(reconciler.converted_total_addendum(order_id, "customer")),
        },
    )


@router.get("/admin/orders/{order_id}", response_class=HTMLResponse)
async def admin_order_view(
    request: Request,
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    order = _require_order(reconciler, order_id)
    rows = reconciler.itemized_totals(order_id, _storefront_rows(reconciler, order))
    return templates.TemplateResponse(
        request,
        "admin_order.html",
        {
            "order": order,
            "rows": _render_rows(rows),
            "addendum": markup(reconciler.converted_total_addendum(order_id, "admin")),
        },
    )


@router.get("/orders/{order_id}/email", response_class=HTMLResponse)
async def order_email(
    request: Request,
    order_id: int,
    reconciler: OrderCurrencyReconciler = Depends(get_reconciler),
):
    order = _require_order(reconciler, order_id)
    rows = reconciler.itemized_totals(order_id, _storefront_rows(reconciler, order))
    return templates.TemplateResponse(
        request,
        "order_email.html",
        {
            "order": order,
            "rows": _render_rows(rows),
            "addendum": markup(reconciler.converted_total_addendum(order_id, "email")),
        },
    )
