"""Data Access Layer for the storefront order store.

Responsibilities
----------------
- Order CRUD, including the generic `total` field and the two permanent
  currency totals (written once, guarded in SQL).
- Refund records as reported by the gateway and their display-currency
  rewrite.
- Pending checkout totals with an expiry.
- Analytics summary rows (table name supplied by the caller, since the
  storefront owns that table and it may be absent).
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from typing import Any, Dict, List, Optional

from gateway_currency.models.constants import ORDER_STATUSES, TOTALS_STATUSES

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def table_exists(self, name: str) -> bool:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
                (name,),
            )
            return cur.fetchone() is not None

    # ------------------------------------------------------------------
    # Orders
    def create_order(self, total: float, currency: str) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO orders (currency, total, created_at, updated_at)
                VALUES (?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (currency, total),
            )
            conn.commit()
            return int(cur.lastrowid)

    def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM orders WHERE id = ?", (order_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def set_order_total(self, order_id: int, total: float) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE orders SET total = ?, updated_at = ({UTC_NOW_SQL}) WHERE id = ?",
                (total, order_id),
            )
            if cur.rowcount == 0:
                raise ValueError("Order not found")
            conn.commit()

    def record_order_totals(
        self,
        order_id: int,
        display_total: Optional[float],
        converted_total: Optional[float],
        totals_status: str = "recorded",
    ) -> bool:
        """Write the permanent currency totals once.

        Returns False when the order already left the 'pending' totals state,
        in which case nothing is written.
        """
        if totals_status not in TOTALS_STATUSES:
            raise ValueError(f"Unsupported totals status '{totals_status}'")
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE orders
                SET display_total = ?, converted_total = ?, totals_status = ?,
                    updated_at = ({UTC_NOW_SQL})
                WHERE id = ? AND totals_status = 'pending'
                """,
                (display_total, converted_total, totals_status, order_id),
            )
            conn.commit()
            return cur.rowcount == 1

    def set_order_status(self, order_id: int, status: str) -> None:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unsupported order status '{status}'")
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE orders SET status = ?, updated_at = ({UTC_NOW_SQL}) WHERE id = ?",
                (status, order_id),
            )
            if cur.rowcount == 0:
                raise ValueError("Order not found")
            conn.commit()

    # ------------------------------------------------------------------
    # Refunds
    def insert_refund(
        self, order_id: int, gateway_amount: float, is_partial: bool
    ) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO refunds (
                    order_id, gateway_amount, amount, total, is_partial,
                    reconciled, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (
                    order_id,
                    gateway_amount,
                    gateway_amount,
                    -gateway_amount,
                    1 if is_partial else 0,
                ),
            )
            conn.commit()
            return int(cur.lastrowid)

    def get_refund(self, refund_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM refunds WHERE id = ?", (refund_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_refunds(self, order_id: int) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM refunds WHERE order_id = ? ORDER BY id ASC",
                (order_id,),
            )
            return [dict(r) for r in cur.fetchall()]

    def set_refund_amounts(self, refund_id: int, amount: float, total: float) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE refunds
                SET amount = ?, total = ?, reconciled = 1, updated_at = ({UTC_NOW_SQL})
                WHERE id = ?
                """,
                (amount, total, refund_id),
            )
            if cur.rowcount == 0:
                raise ValueError("Refund not found")
            conn.commit()

    def reconciled_refund_amount(self, order_id: int) -> float:
        sql = (
            "SELECT COALESCE(ROUND(SUM(amount), 2), 0.0) FROM refunds "
            "WHERE order_id = ? AND reconciled = 1"
        )
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(sql, (order_id,))
            return float(cur.fetchone()[0] or 0.0)

    def gateway_refunded_amount(self, order_id: int) -> float:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COALESCE(ROUND(SUM(gateway_amount), 2), 0.0) FROM refunds WHERE order_id = ?",
                (order_id,),
            )
            return float(cur.fetchone()[0] or 0.0)

    def sum_refund_totals(self, order_id: int) -> float:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COALESCE(ROUND(SUM(total), 2), 0.0) FROM refunds WHERE order_id = ?",
                (order_id,),
            )
            return float(cur.fetchone()[0] or 0.0)

    # ------------------------------------------------------------------
    # Pending checkout totals
    def upsert_checkout_context(
        self,
        order_id: int,
        display_total: float,
        converted_total: float,
        expires_at: str,
        session_key: Optional[str] = None,
    ) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO checkout_contexts (
                    order_id, session_key, pending_display_total,
                    pending_converted_total, created_at, expires_at
                ) VALUES (?, ?, ?, ?, ({UTC_NOW_SQL}), ?)
                ON CONFLICT(order_id) DO UPDATE SET
                    session_key = excluded.session_key,
                    pending_display_total = excluded.pending_display_total,
                    pending_converted_total = excluded.pending_converted_total,
                    created_at = excluded.created_at,
                    expires_at = excluded.expires_at
                """,
                (order_id, session_key, display_total, converted_total, expires_at),
            )
            conn.commit()

    def pop_checkout_context(
        self, order_id: int, now_iso: str
    ) -> Optional[Dict[str, Any]]:
        """Delete and return the pending record; expired records come back as None."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT * FROM checkout_contexts WHERE order_id = ?", (order_id,)
            )
            row = cur.fetchone()
            if row is None:
                return None
            cur.execute("DELETE FROM checkout_contexts WHERE order_id = ?", (order_id,))
            conn.commit()
            record = dict(row)
            if record["expires_at"] <= now_iso:
                return None
            return record

    def purge_checkout_contexts(self, now_iso: str) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM checkout_contexts WHERE expires_at <= ?", (now_iso,))
            conn.commit()
            return cur.rowcount

    # ------------------------------------------------------------------
    # Analytics summary rows (caller checks the table exists)
    def upsert_stats_row(
        self,
        table: str,
        order_id: int,
        refund_id: Optional[int],
        total: float,
    ) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            if refund_id is None:
                where, params = "order_id = ? AND refund_id IS NULL", (order_id,)
            else:
                where, params = "refund_id = ?", (refund_id,)
            cur.execute(
                f"""
                UPDATE {table}
                SET total_sales = ?, net_total = ?, updated_at = ({UTC_NOW_SQL})
                WHERE {where}
                """,
                (total, total, *params),
            )
            if cur.rowcount == 0:
                cur.execute(
                    f"""
                    INSERT INTO {table} (order_id, refund_id, total_sales, net_total, updated_at)
                    VALUES (?, ?, ?, ?, ({UTC_NOW_SQL}))
                    """,
                    (order_id, refund_id, total, total),
                )
            conn.commit()

    def update_refund_stats(self, table: str, refund_id: int, total: float) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE {table}
                SET total_sales = ?, net_total = ?, updated_at = ({UTC_NOW_SQL})
                WHERE refund_id = ?
                """,
                (total, total, refund_id),
            )
            conn.commit()
            return cur.rowcount

    def get_refund_stats(self, table: str, refund_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT * FROM {table} WHERE refund_id = ?", (refund_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def stats_totals(self, table: str) -> Dict[str, Any]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT COALESCE(ROUND(SUM(total_sales), 2), 0.0) AS total_sales,
                       COALESCE(ROUND(SUM(net_total), 2), 0.0) AS net_total,
                       COUNT(*) AS rows
                FROM {table}
                """
            )
            return dict(cur.fetchone())
