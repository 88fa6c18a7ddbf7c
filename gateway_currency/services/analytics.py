from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from gateway_currency.db.dal import Database
from gateway_currency.services.money import round2

if TYPE_CHECKING:  # pragma: no cover
    from gateway_currency.core.config import Settings

"""Analytics summary table helpers.

The summary table belongs to the storefront and may not exist at all; every
writer here checks first and quietly does nothing when it is absent. Reads go
through an lru_cache keyed by database path and table, cleared whenever a row
is rewritten.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesSummary:
    total_sales: float
    net_total: float
    rows: int
    currency: str


def invalidate_summary_cache() -> None:
    _cached_totals.cache_clear()


@lru_cache(maxsize=32)
def _cached_totals(db_path: str, table: str) -> tuple[float, float, int]:
    db = Database(db_path)  # type: ignore[arg-type]
    totals = db.stats_totals(table)
    return (
        round2(totals["total_sales"]),
        round2(totals["net_total"]),
        int(totals["rows"]),
    )


def sales_summary(db: Database, settings: "Settings") -> SalesSummary:
    table = settings.analytics_table
    if not db.table_exists(table):
        return SalesSummary(0.0, 0.0, 0, settings.display_currency)
    total_sales, net_total, rows = _cached_totals(str(db.db_path), table)
    return SalesSummary(total_sales, net_total, rows, settings.display_currency)


def update_analytics_row(
    db: Database, settings: "Settings", refund_id: int, negative_total: float
) -> bool:
    """Overwrite both aggregate columns of a refund's row with `negative_total`.

    Returns False without touching anything when the table does not exist.
    """
    table = settings.analytics_table
    if not db.table_exists(table):
        logger.warning("analytics table %s missing; refund %s not synced", table, refund_id)
        return False
    updated = db.update_refund_stats(table, refund_id, negative_total)
    if updated == 0:
        logger.debug("no analytics row for refund %s", refund_id)
    invalidate_summary_cache()
    return True


def record_order_row(
    db: Database,
    settings: "Settings",
    order_id: int,
    total: float,
    refund_id: int | None = None,
) -> bool:
    """Storefront-side writer: one row per order and per refund."""
    table = settings.analytics_table
    if not db.table_exists(table):
        return False
    db.upsert_stats_row(table, order_id, refund_id, total)
    invalidate_summary_cache()
    return True


__all__ = [
    "SalesSummary",
    "sales_summary",
    "update_analytics_row",
    "record_order_row",
    "invalidate_summary_cache",
]
