"""Money / rounding helpers.

Centralized so conversion, presentation and refund handling use identical
rounding semantics: half-up to 2 decimals, computed in Decimal.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")


def _to_decimal(value: float | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: float | str | Decimal) -> float:
    return float(_to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def convert_amount(amount: float, rate: float | Decimal) -> float:
    """Return amount * rate rounded half-up to 2 decimals."""
    return round2(_to_decimal(amount) * _to_decimal(rate))


def format_amount(amount: float | str | Decimal) -> str:
    """'.' decimal separator, ',' group separator, always 2 decimals."""
    quantized = _to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return f"{quantized:,.2f}"


def parse_amount(text: str) -> float:
    """Inverse of format_amount; raises ValueError on anything else."""
    cleaned = text.replace(",", "").strip()
    if not cleaned:
        raise ValueError("empty amount")
    try:
        return float(Decimal(cleaned))
    except InvalidOperation as exc:
        raise ValueError(f"not an amount: {text!r}") from exc
