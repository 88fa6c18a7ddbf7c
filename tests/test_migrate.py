import sqlite3

import pytest

from gateway_currency.db.dal import Database
from gateway_currency.db.migrate import CURRENT_SCHEMA_VERSION, apply_migrations


def _recorded_version(path):
    with sqlite3.connect(path) as conn:
        row = conn.execute("SELECT value FROM metadata WHERE key='schema_version'").fetchone()
    return int(row[0])


def test_fresh_database(tmp_path):
    path = tmp_path / "fresh.sqlite3"
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION == 1
    db = Database(path)
    for table in ("orders", "refunds", "checkout_contexts", "order_stats", "metadata"):
        assert db.table_exists(table)
    assert _recorded_version(path) == 1


def test_migrations_are_idempotent(reconciler, settings, placed_order):
    assert apply_migrations(settings.db_path) == CURRENT_SCHEMA_VERSION
    order = reconciler.db.get_order(placed_order)
    assert order["display_total"] == 500.00


def test_custom_analytics_table(tmp_path):
    path = tmp_path / "custom.sqlite3"
    apply_migrations(path, analytics_table="wc_order_stats")
    assert Database(path).table_exists("wc_order_stats")


def test_newer_schema_is_rejected(tmp_path):
    path = tmp_path / "newer.sqlite3"
    apply_migrations(path)
    with sqlite3.connect(path) as conn:
        conn.execute("UPDATE metadata SET value='99' WHERE key='schema_version'")
    with pytest.raises(RuntimeError):
        apply_migrations(path)
