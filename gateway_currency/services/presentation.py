"""Price presentation and rendering-time substitution.

Prices travel as `PricePresentation` values (amount + currency + symbol) and
are only turned into markup at the edge. For surfaces that hand us a string
the storefront already rendered, `substitute_amount` swaps the number between
the structural markers and leaves the rest of the markup alone.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from gateway_currency.services.money import format_amount

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# The amount sits between the symbol's closing span and the currency-code span.
AMOUNT_PATTERN = re.compile(r"</span>(.*?)<span id")
# First number in the segment; digits inside entities such as &#160; never match
_AMOUNT_RUN = re.compile(r"(?<![#\w])\d[\d,]*(?:\.\d+)?")

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class PricePresentation:
    amount: float
    currency: str
    symbol: str = "$"

    def render(self) -> str:
        sign = "-" if self.amount < 0 else ""
        return (
            '<span class="amount">'
            f'{sign}<span class="currency-symbol">{self.symbol}</span>'
            f"{format_amount(abs(self.amount))}&nbsp;"
            f'<span id="currency-code">{self.currency}</span>'
            "</span>"
        )

    def with_amount(self, amount: float) -> "PricePresentation":
        return replace(self, amount=amount)

    def __html__(self) -> str:  # jinja2 renders it without escaping
        return self.render()


@dataclass
class TotalRow:
    key: str
    label: str
    value: str

    @property
    def is_refund(self) -> bool:
        return "refund" in self.key


def _amount_span(formatted: str) -> Optional[tuple[int, int]]:
    marker = AMOUNT_PATTERN.search(formatted)
    if not marker:
        return None
    run = _AMOUNT_RUN.search(marker.group(1))
    if not run:
        return None
    offset = marker.start(1)
    return offset + run.start(), offset + run.end()


def extract_amount(formatted: str) -> Optional[str]:
    """Return the numeric text embedded in a rendered price, or None."""
    span = _amount_span(formatted)
    if span is None:
        return None
    return formatted[span[0] : span[1]]


def substitute_amount(formatted: str, amount: float) -> Optional[str]:
    """Replace the embedded amount with `amount`, keeping the surrounding markup.

    Returns None when no amount sits between the markers.
    """
    span = _amount_span(formatted)
    if span is None:
        logger.warning("no amount between price markers; left unchanged")
        return None
    start, end = span
    return formatted[:start] + format_amount(amount) + formatted[end:]


def render_fragment(template_name: str, **context) -> str:
    return _env.get_template(template_name).render(**context)


def markup(value: str) -> Markup:
    """Mark storefront-rendered HTML as safe for templates."""
    return Markup(value)
