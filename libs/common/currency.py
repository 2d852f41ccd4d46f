"""Money helpers for the storefront.

All amounts are ``Decimal`` rupees with two decimal places (paise). Floats
never enter price arithmetic; API payloads carry decimals as strings or
numbers and are normalised through :func:`to_money`.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

CURRENCY: str = "INR"

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Coerce to a Decimal rounded half-up to paise."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
