from __future__ import annotations

"""Rate provider abstraction.

A provider supplies the two fixed rates of the single display/settlement
pair. Live rate retrieval is out of scope; providers only differ in how the
reverse rate is derived.
"""
from abc import ABC, abstractmethod
from decimal import Decimal


class RateProvider(ABC):
    display_currency: str = "XCD"
    settlement_currency: str = "USD"

    @abstractmethod
    def display_to_settlement(self) -> Decimal:
        """Return settlement units per 1 unit of display currency."""
        raise NotImplementedError

    @abstractmethod
    def settlement_to_display(self) -> Decimal:
        """Return display units per 1 unit of settlement currency."""
        raise NotImplementedError
