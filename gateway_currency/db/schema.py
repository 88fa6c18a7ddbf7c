"""Database schema DDL definitions and initialization utilities.

Tables:
  - orders: storefront order records; `total` is the generic total field the
    gateway and every platform view read, the two currency columns are the
    permanent record captured at checkout
  - refunds: refund records as reported by the gateway and then re-expressed in
    the display currency
  - checkout_contexts: pending totals handed from order finalization to
    order persistence, with an expiry
  - order_stats: analytics summary rows (one per order and per refund)
  - metadata: key/value store (schema version etc.)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

ORDERS_DDL = f"""
CREATE TABLE IF NOT EXISTS orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    currency TEXT NOT NULL, -- display currency code
    total REAL NOT NULL,
    display_total REAL, -- display currency, fixed at checkout
    converted_total REAL, -- settlement currency, fixed at checkout
    totals_status TEXT NOT NULL DEFAULT 'pending'
        CHECK (totals_status IN ('pending','recorded','missing')),
    status TEXT NOT NULL DEFAULT 'created'
        CHECK (status IN ('created','confirmed','partially_refunded','refunded')),
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

REFUNDS_DDL = f"""
CREATE TABLE IF NOT EXISTS refunds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id INTEGER NOT NULL,
    gateway_amount REAL NOT NULL, -- settlement currency, as reported
    amount REAL NOT NULL,
    total REAL NOT NULL, -- negative running total
    is_partial INTEGER NOT NULL DEFAULT 1,
    reconciled INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
);
"""

CHECKOUT_CONTEXTS_DDL = f"""
CREATE TABLE IF NOT EXISTS checkout_contexts (
    order_id INTEGER PRIMARY KEY,
    session_key TEXT,
    pending_display_total REAL NOT NULL,
    pending_converted_total REAL NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    expires_at TEXT NOT NULL -- ISO timestamp (UTC)
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""


def order_stats_ddl(table: str) -> str:
    return f"""
CREATE TABLE IF NOT EXISTS {table} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id INTEGER NOT NULL,
    refund_id INTEGER,
    total_sales REAL NOT NULL DEFAULT 0,
    net_total REAL NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    UNIQUE(order_id, refund_id)
);
"""


REFUNDS_ORDER_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_refunds_order ON refunds(order_id);"
)
CHECKOUT_EXPIRY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_checkout_contexts_expiry ON checkout_contexts(expires_at);"
)

DDL_ORDER: Sequence[str] = (
    ORDERS_DDL,
    REFUNDS_DDL,
    CHECKOUT_CONTEXTS_DDL,
    METADATA_DDL,
)


def init_db(path: Path, analytics_table: str = "order_stats") -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    analytics_table: Name of the analytics summary table.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(order_stats_ddl(analytics_table))
        for ddl in (REFUNDS_ORDER_INDEX_DDL, CHECKOUT_EXPIRY_INDEX_DDL):
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()
