from __future__ import annotations

"""Concrete rate providers and factory.

'reciprocal' keeps one canonical rate and uses its exact inverse for the way
back. 'independent' uses two separately fixed constants, reproducing the
storefront's legacy figures (0.369787 / 2.70426), which are not inverses
of each other.
"""
from decimal import Decimal
from typing import TYPE_CHECKING

from .base import RateProvider

if TYPE_CHECKING:  # pragma: no cover
    from gateway_currency.core.config import Settings


class ReciprocalRateProvider(RateProvider):
    def __init__(self, display_to_settlement: float):
        if display_to_settlement <= 0:
            raise ValueError("rate must be positive")
        self._rate = Decimal(str(display_to_settlement))

    def display_to_settlement(self) -> Decimal:  # type: ignore[override]
        return self._rate

    def settlement_to_display(self) -> Decimal:  # type: ignore[override]
        return Decimal(1) / self._rate


class IndependentRateProvider(RateProvider):
    def __init__(self, display_to_settlement: float, settlement_to_display: float):
        if display_to_settlement <= 0 or settlement_to_display <= 0:
            raise ValueError("rates must be positive")
        self._forward = Decimal(str(display_to_settlement))
        self._reverse = Decimal(str(settlement_to_display))

    def display_to_settlement(self) -> Decimal:  # type: ignore[override]
        return self._forward

    def settlement_to_display(self) -> Decimal:  # type: ignore[override]
        return self._reverse


_PROVIDER_REGISTRY = {
    "reciprocal": ReciprocalRateProvider,
    "independent": IndependentRateProvider,
}


def make_rate_provider(settings: "Settings") -> RateProvider:
    cls = _PROVIDER_REGISTRY.get(settings.rate_mode)
    if not cls:
        raise ValueError(f"Unknown rate mode '{settings.rate_mode}'")
    if cls is ReciprocalRateProvider:
        provider: RateProvider = ReciprocalRateProvider(
            settings.display_to_settlement_rate
        )
    else:
        provider = IndependentRateProvider(
            settings.display_to_settlement_rate, settings.settlement_to_display_rate
        )
    provider.display_currency = settings.display_currency
    provider.settlement_currency = settings.settlement_currency
    return provider
