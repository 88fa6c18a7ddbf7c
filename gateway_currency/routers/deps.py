from fastapi import Depends

from gateway_currency.core.config import Settings, get_settings
from gateway_currency.db.dal import Database
from gateway_currency.services.rates.conversion import build_converter
from gateway_currency.services.reconciler import OrderCurrencyReconciler

# Dependencies -----------------------------------------------------


def get_db(settings: Settings = Depends(get_settings)) -> Database:
    return Database(settings.db_path)  # type: ignore[arg-type]


def get_reconciler(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> OrderCurrencyReconciler:
    return OrderCurrencyReconciler(db, build_converter(settings), settings)
