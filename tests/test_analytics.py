import sqlite3

from gateway_currency.services.analytics import (
    record_order_row,
    sales_summary,
    update_analytics_row,
)


def test_refund_row_rewritten_in_display_currency(reconciler, db, settings, placed_order):
    reconciler.confirm_order(placed_order)
    refund = reconciler.record_gateway_refund(placed_order, 50.00)
    row = db.get_refund_stats(settings.analytics_table, refund["id"])
    assert row["total_sales"] == row["net_total"] == -135.21


def test_summary_reflects_rewrite(reconciler, db, settings, placed_order):
    reconciler.confirm_order(placed_order)
    before = sales_summary(db, settings)
    assert before.total_sales == 500.00
    reconciler.record_gateway_refund(placed_order, 50.00)
    after = sales_summary(db, settings)
    assert after.net_total == 364.79
    assert after.rows == 2


def test_update_without_row_is_harmless(db, settings):
    assert update_analytics_row(db, settings, refund_id=42, negative_total=-1.0) is True
    assert db.get_refund_stats(settings.analytics_table, 42) is None


def test_missing_table_is_a_noop(reconciler, db, settings, placed_order):
    with sqlite3.connect(settings.db_path) as conn:
        conn.execute(f"DROP TABLE {settings.analytics_table}")

    assert record_order_row(db, settings, placed_order, 500.00) is False
    assert update_analytics_row(db, settings, 1, -10.0) is False
    # Refund reconciliation still completes
    refund = reconciler.record_gateway_refund(placed_order, 50.00)
    assert refund["amount"] == 135.21
    assert sales_summary(db, settings).rows == 0
