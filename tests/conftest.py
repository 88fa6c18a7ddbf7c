import pytest
from fastapi.testclient import TestClient

from gateway_currency.core.config import Settings
from gateway_currency.db.dal import Database
from gateway_currency.db.migrate import apply_migrations
from gateway_currency.main import create_app
from gateway_currency.services.analytics import invalidate_summary_cache
from gateway_currency.services.checkout_context import clear_checkout_context
from gateway_currency.services.rates.conversion import build_converter
from gateway_currency.services.reconciler import OrderCurrencyReconciler


@pytest.fixture(autouse=True)
def _reset_process_state():
    clear_checkout_context()
    invalidate_summary_cache()
    yield
    clear_checkout_context()
    invalidate_summary_cache()


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        settings = Settings(data_dir=tmp_path, db_filename="test.sqlite3", **overrides)
        settings.init_post_load()
        return settings

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def db(settings) -> Database:
    apply_migrations(settings.db_path, settings.analytics_table)
    return Database(settings.db_path)


@pytest.fixture
def reconciler(db, settings) -> OrderCurrencyReconciler:
    return OrderCurrencyReconciler(db, build_converter(settings), settings)


@pytest.fixture
def placed_order(reconciler):
    """An order for 500.00 display currency, finalized and persisted, not yet confirmed."""
    order_id = reconciler.create_order(500.00)
    reconciler.finalize_order_total(order_id)
    reconciler.persist_order_totals(order_id)
    return order_id


@pytest.fixture
def client(settings) -> TestClient:
    return TestClient(create_app(settings_override=settings))
