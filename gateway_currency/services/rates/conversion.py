from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gateway_currency.services.money import convert_amount
from .base import RateProvider
from .providers import make_rate_provider

if TYPE_CHECKING:  # pragma: no cover
    from gateway_currency.core.config import Settings

"""Display <-> settlement conversion.

Both directions are pure: the result depends only on the amount and the
provider's fixed rates, rounded half-up to 2 decimals in one place.
"""


@dataclass(frozen=True)
class CheckoutTotal:
    display_total: float
    settlement_total: float
    display_currency: str
    settlement_currency: str


class CurrencyConverter:
    def __init__(self, provider: RateProvider):
        self._provider = provider

    @property
    def display_currency(self) -> str:
        return self._provider.display_currency

    @property
    def settlement_currency(self) -> str:
        return self._provider.settlement_currency

    def to_settlement(self, amount: float) -> float:
        return convert_amount(amount, self._provider.display_to_settlement())

    def to_display(self, amount: float) -> float:
        return convert_amount(amount, self._provider.settlement_to_display())

    def checkout_total(self, display_total: float) -> CheckoutTotal:
        return CheckoutTotal(
            display_total=display_total,
            settlement_total=self.to_settlement(display_total),
            display_currency=self.display_currency,
            settlement_currency=self.settlement_currency,
        )


def build_converter(settings: "Settings") -> CurrencyConverter:
    return CurrencyConverter(make_rate_provider(settings))

