"""Order currency reconciliation.

Keeps an order's generic total and its two permanent currency totals
consistent across the order lifecycle:

    cart total finalized   -> generic total holds the settlement amount, the
                              display/settlement pair is stashed as pending
    order persisted        -> pending pair written once as display_total /
                              converted_total
    confirmation shown     -> generic total reset to display_total
    refund reported        -> refund re-expressed in the display currency,
                              analytics row rewritten

Every later read uses the two permanent fields; nothing is recomputed from
the current rate after checkout.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from gateway_currency.core.errors import (
    InvalidOrderTransition,
    MissingCheckoutTotals,
    OrderNotFound,
    RefundNotFound,
)
from gateway_currency.db.dal import Database
from gateway_currency.models.constants import ADDENDUM_SURFACES, ALLOWED_TRANSITIONS
from gateway_currency.services import analytics
from gateway_currency.services.checkout_context import (
    PendingTotals,
    put_pending_totals,
    take_pending_totals,
)
from gateway_currency.services.money import format_amount, parse_amount, round2
from gateway_currency.services.presentation import (
    PricePresentation,
    TotalRow,
    extract_amount,
    render_fragment,
    substitute_amount,
)
from gateway_currency.services.rates.conversion import CheckoutTotal, CurrencyConverter

if TYPE_CHECKING:  # pragma: no cover
    from gateway_currency.core.config import Settings

logger = logging.getLogger(__name__)

ORDER_TOTAL_KEY = "order_total"
# Refund amounts within a cent of the charged total count as full refunds
_CENT_TOLERANCE = 0.005


class OrderCurrencyReconciler:
    def __init__(
        self, db: Database, converter: CurrencyConverter, settings: "Settings"
    ):
        self.db = db
        self.converter = converter
        self.settings = settings

    # Internal --------------------------------------------------
    def _require_order(self, order_id: int) -> Dict[str, Any]:
        order = self.db.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def _require_refund(self, order_id: int, refund_id: int) -> Dict[str, Any]:
        refund = self.db.get_refund(refund_id)
        if refund is None or int(refund["order_id"]) != order_id:
            raise RefundNotFound(refund_id)
        return refund

    def _check_transition(self, order: Dict[str, Any], target: str) -> None:
        current = order["status"]
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidOrderTransition(
                f"order {order['id']} cannot move from {current} to {target}"
            )

    def _log_extra(self, order_id: int) -> Dict[str, Any]:
        return {"order_id": order_id}

    def display_price(self, amount: float) -> PricePresentation:
        return PricePresentation(
            amount=amount,
            currency=self.settings.display_currency,
            symbol=self.settings.currency_symbol,
        )

    def settlement_price(self, amount: float) -> PricePresentation:
        return PricePresentation(
            amount=amount,
            currency=self.settings.settlement_currency,
            symbol=self.settings.currency_symbol,
        )

    # Checkout presentation ------------------------------------
    def checkout_total(self, cart_total: float) -> CheckoutTotal:
        """Settlement equivalent of the current cart; touches no stored state."""
        return self.converter.checkout_total(cart_total)

    def checkout_box(self, cart_total: float) -> str:
        total = self.checkout_total(cart_total)
        return render_fragment(
            "checkout_total.html",
            total=total,
            symbol=self.settings.currency_symbol,
            settlement_amount=format_amount(total.settlement_total),
        )

    # Cart -> Order created ------------------------------------
    def create_order(self, cart_total: float) -> int:
        """Storefront side: record the order with its total in display currency."""
        order_id = self.db.create_order(round2(cart_total), self.settings.display_currency)
        logger.info("order %s created from cart", order_id, extra=self._log_extra(order_id))
        return order_id

    def finalize_order_total(
        self, order_id: int, session_key: Optional[str] = None
    ) -> float:
        order = self._require_order(order_id)
        if order["status"] != "created" or order["totals_status"] != "pending":
            raise InvalidOrderTransition(
                f"order {order_id} total was already finalized"
            )
        # 1. At this instant the generic total is still in display currency
        display_total = round2(order["total"])
        # 2-3. Stash both amounts until the order is persisted
        converted_total = self.converter.to_settlement(display_total)
        put_pending_totals(
            self.db,
            PendingTotals.create(
                order_id=order_id,
                display_total=display_total,
                converted_total=converted_total,
                ttl_seconds=self.settings.checkout_context_ttl_seconds,
                session_key=session_key,
            ),
        )
        # 4. The gateway charges whatever the generic total holds
        self.db.set_order_total(order_id, converted_total)
        logger.info(
            "order %s total set to %s %s for the gateway",
            order_id,
            converted_total,
            self.settings.settlement_currency,
            extra=self._log_extra(order_id),
        )
        return converted_total

    def persist_order_totals(self, order_id: int) -> Dict[str, Any]:
        order = self._require_order(order_id)
        if order["totals_status"] != "pending":
            logger.debug(
                "order %s totals already %s; ignoring",
                order_id,
                order["totals_status"],
                extra=self._log_extra(order_id),
            )
            return order

        pending = take_pending_totals(self.db, order_id)
        if pending is None:
            self.db.record_order_totals(order_id, None, None, totals_status="missing")
            logger.warning(
                "order %s persisted without checkout totals",
                order_id,
                extra=self._log_extra(order_id),
            )
            if self.settings.missing_totals_policy == "raise":
                raise MissingCheckoutTotals(
                    f"checkout totals for order {order_id} were lost before persistence"
                )
            return self._require_order(order_id)

        self.db.record_order_totals(
            order_id, pending.display_total, pending.converted_total
        )
        logger.info(
            "order %s totals recorded: %s %s / %s %s",
            order_id,
            pending.display_total,
            self.settings.display_currency,
            pending.converted_total,
            self.settings.settlement_currency,
            extra=self._log_extra(order_id),
        )
        return self._require_order(order_id)

    # Order created -> Confirmed -------------------------------
    def confirm_order(self, order_id: int) -> Dict[str, Any]:
        order = self._require_order(order_id)
        display_total = order["display_total"]
        if display_total is None:
            logger.warning(
                "order %s has no display total; generic total left at %s",
                order_id,
                order["total"],
                extra=self._log_extra(order_id),
            )
            return order
        self.db.set_order_total(order_id, display_total)
        if order["status"] == "created":
            self.db.set_order_status(order_id, "confirmed")
            logger.info("order %s confirmed", order_id, extra=self._log_extra(order_id))
        # Storefront resyncs the order's analytics row from the generic total
        analytics.record_order_row(self.db, self.settings, order_id, display_total)
        return self._require_order(order_id)

    # Rendering-time substitution ------------------------------
    def formatted_order_total(self, order_id: int, formatted: str) -> tuple[str, bool]:
        """Swap the amount in an already rendered total for display_total."""
        order = self._require_order(order_id)
        display_total = order["display_total"]
        if display_total is None:
            return formatted, False
        substituted = substitute_amount(formatted, display_total)
        if substituted is None:
            return formatted, False
        return substituted, True

    def itemized_totals(self, order_id: int, rows: List[TotalRow]) -> List[TotalRow]:
        order = self._require_order(order_id)
        display_total = order["display_total"]
        if display_total is None:
            logger.warning(
                "order %s has no display total; item totals left unchanged",
                order_id,
                extra=self._log_extra(order_id),
            )
            return rows

        total = display_total
        refund_rows = [r for r in rows if r.is_refund]
        if refund_rows:
            refunded = self.db.reconciled_refund_amount(order_id)
            if not refunded:
                refunded = self._refunded_from_rows(refund_rows)
            total = round2(display_total - refunded)

        value = self.display_price(total).render()
        result: List[TotalRow] = []
        replaced = False
        for row in rows:
            if row.key == ORDER_TOTAL_KEY:
                result.append(TotalRow(row.key, row.label, value))
                replaced = True
            else:
                result.append(row)
        if not replaced:
            result.append(TotalRow(ORDER_TOTAL_KEY, "Total:", value))
        return result

    def _refunded_from_rows(self, refund_rows: List[TotalRow]) -> float:
        refunded = 0.0
        for row in refund_rows:
            text = extract_amount(row.value)
            if text is None:
                continue
            try:
                refunded += parse_amount(text)
            except ValueError:
                logger.warning("unparseable refund amount %r in row %s", text, row.key)
        return round2(refunded)

    def converted_total_addendum(self, order_id: int, surface: str) -> str:
        """The 'amount paid in settlement currency' line for admin, customer and email views."""
        if surface not in ADDENDUM_SURFACES:
            raise ValueError(f"Unknown surface '{surface}'")
        order = self._require_order(order_id)
        converted = order["converted_total"]
        if converted is None:
            return ""
        return render_fragment(
            f"addendum_{surface}.html", price=self.settlement_price(converted)
        )

    # Refunds --------------------------------------------------
    def record_gateway_refund(
        self, order_id: int, gateway_amount: float, is_partial: Optional[bool] = None
    ) -> Dict[str, Any]:
        """Storefront side: store the gateway's refund, then reconcile it."""
        order = self._require_order(order_id)
        self._check_transition(order, "partially_refunded")
        gateway_amount = round2(gateway_amount)
        if is_partial is None:
            charged = order["converted_total"]
            if charged is None:
                charged = order["total"]
            refunded = self.db.gateway_refunded_amount(order_id) + gateway_amount
            is_partial = refunded < float(charged) - _CENT_TOLERANCE
        refund_id = self.db.insert_refund(order_id, gateway_amount, is_partial)
        # The storefront books the refund in gateway terms first
        analytics.record_order_row(
            self.db, self.settings, order_id, -gateway_amount, refund_id=refund_id
        )
        logger.info(
            "order %s refund %s reported: %s %s (%s)",
            order_id,
            refund_id,
            gateway_amount,
            self.settings.settlement_currency,
            "partial" if is_partial else "full",
            extra=self._log_extra(order_id),
        )
        if is_partial:
            return self.handle_partial_refund(order_id, refund_id)
        return self.handle_full_refund(order_id, refund_id)

    def handle_partial_refund(self, order_id: int, refund_id: int) -> Dict[str, Any]:
        order = self._require_order(order_id)
        refund = self._require_refund(order_id, refund_id)
        if refund["reconciled"]:
            logger.debug("refund %s already reconciled", refund_id)
            return refund
        self._check_transition(order, "partially_refunded")

        amount = self.converter.to_display(refund["gateway_amount"])
        return self._apply_refund(order_id, refund_id, amount, "partially_refunded")

    def handle_full_refund(self, order_id: int, refund_id: int) -> Dict[str, Any]:
        order = self._require_order(order_id)
        refund = self._require_refund(order_id, refund_id)
        if refund["reconciled"]:
            logger.debug("refund %s already reconciled", refund_id)
            return refund
        self._check_transition(order, "refunded")

        display_total = order["display_total"]
        if display_total is None:
            raise MissingCheckoutTotals(
                f"order {order_id} has no display total to refund against"
            )
        # Recorded at the order's own display total whatever the gateway reported
        return self._apply_refund(order_id, refund_id, round2(display_total), "refunded")

    def _apply_refund(
        self, order_id: int, refund_id: int, amount: float, status: str
    ) -> Dict[str, Any]:
        negative_total = -amount if amount else 0.0
        self.db.set_refund_amounts(refund_id, amount, negative_total)
        self.db.set_order_status(order_id, status)
        analytics.update_analytics_row(self.db, self.settings, refund_id, negative_total)
        logger.info(
            "order %s refund %s reconciled: %s %s",
            order_id,
            refund_id,
            amount,
            self.settings.display_currency,
            extra=self._log_extra(order_id),
        )
        return self._require_refund(order_id, refund_id)

    def order_balance(self, order_id: int) -> Optional[float]:
        """display_total plus every refund's (negative) running total."""
        order = self._require_order(order_id)
        if order["display_total"] is None:
            return None
        return round2(order["display_total"] + self.db.sum_refund_totals(order_id))


__all__ = ["OrderCurrencyReconciler", "ORDER_TOTAL_KEY"]
