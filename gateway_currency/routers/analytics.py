from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from gateway_currency.core.config import Settings, get_settings
from gateway_currency.db.dal import Database
from gateway_currency.routers.deps import get_db
from gateway_currency.services.analytics import sales_summary

router = APIRouter(prefix="/analytics", tags=["analytics"])


class SalesSummaryOut(BaseModel):
    total_sales: float
    net_total: float
    rows: int
    currency: str


@router.get(
    "/summary",
    response_model=SalesSummaryOut,
    summary="Sales totals from the analytics summary table",
)
async def summary_endpoint(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Return aggregate sales in display currency.

    Zeros when the storefront has no summary table.
    """
    result = sales_summary(db, settings)
    return SalesSummaryOut(
        total_sales=result.total_sales,
        net_total=result.net_total,
        rows=result.rows,
        currency=result.currency,
    )
