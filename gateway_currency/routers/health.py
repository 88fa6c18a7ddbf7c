from fastapi import APIRouter, Depends

from gateway_currency.core.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "display_currency": settings.display_currency,
        "settlement_currency": settings.settlement_currency,
        "rate_mode": settings.rate_mode,
    }
