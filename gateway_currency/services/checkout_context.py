"""Pending checkout totals handed from order finalization to persistence.

The two amounts computed when the order total is finalized are kept in an
explicit record keyed by order id, with an expiry, instead of ambient session
state. Within one request the record is also cached in a ContextVar so the
persistence step can pick it up without a round trip.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from gateway_currency.db.dal import Database

logger = logging.getLogger(__name__)

_pending_ctx: ContextVar[Optional[Dict[int, "PendingTotals"]]] = ContextVar(
    "checkout_ctx_pending_totals", default=None
)


def utc_now_iso(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass(frozen=True)
class PendingTotals:
    order_id: int
    display_total: float
    converted_total: float
    expires_at: str
    session_key: Optional[str] = None

    @classmethod
    def create(
        cls,
        order_id: int,
        display_total: float,
        converted_total: float,
        ttl_seconds: int,
        session_key: Optional[str] = None,
    ) -> "PendingTotals":
        expires = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        return cls(
            order_id=order_id,
            display_total=display_total,
            converted_total=converted_total,
            expires_at=utc_now_iso(expires),
            session_key=session_key,
        )

    def expired(self, now_iso: Optional[str] = None) -> bool:
        return self.expires_at <= (now_iso or utc_now_iso())


def put_pending_totals(db: Database, pending: PendingTotals) -> None:
    purged = purge_expired(db)
    if purged:
        logger.info("purged %d expired checkout contexts", purged)
    db.upsert_checkout_context(
        order_id=pending.order_id,
        display_total=pending.display_total,
        converted_total=pending.converted_total,
        expires_at=pending.expires_at,
        session_key=pending.session_key,
    )
    cached = dict(_pending_ctx.get() or {})
    cached[pending.order_id] = pending
    _pending_ctx.set(cached)


def take_pending_totals(db: Database, order_id: int) -> Optional[PendingTotals]:
    """Return and discard the pending totals for an order.

    Returns None when nothing was stashed or the record expired.
    """
    now_iso = utc_now_iso()
    cached = dict(_pending_ctx.get() or {})
    hit = cached.pop(order_id, None)
    _pending_ctx.set(cached)
    row = db.pop_checkout_context(order_id, now_iso)
    if hit is not None and not hit.expired(now_iso):
        return hit
    if row is None:
        return None
    return PendingTotals(
        order_id=int(row["order_id"]),
        display_total=float(row["pending_display_total"]),
        converted_total=float(row["pending_converted_total"]),
        expires_at=row["expires_at"],
        session_key=row["session_key"],
    )


def purge_expired(db: Database) -> int:
    return db.purge_checkout_contexts(utc_now_iso())


def clear_checkout_context() -> None:
    _pending_ctx.set(None)


__all__ = [
    "PendingTotals",
    "put_pending_totals",
    "take_pending_totals",
    "purge_expired",
    "clear_checkout_context",
    "utc_now_iso",
]
