"""Order total calculation and cancellation fee split.

Everything here is pure: same inputs, same outputs, no I/O. Checkout uses
``compute_totals`` once at order creation and stores the result; nothing
recomputes totals for an existing order.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Tuple

from libs.common.currency import TWO_PLACES, ZERO, to_money

TAX_RATE = Decimal("0.18")
FREE_SHIPPING_THRESHOLD = Decimal("1000")  # strictly greater-than
FLAT_SHIPPING_FEE = Decimal("50.00")

CANCELLATION_FEE_RATE = Decimal("0.10")
REFUND_RATE = Decimal("0.90")


@dataclass(frozen=True)
class PricedLine:
    """A cart line frozen at a unit price."""

    product_id: Optional[object]
    product_name: str
    product_sku: str
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal


def calculate_subtotal(lines: Iterable[PricedLine]) -> Decimal:
    return to_money(sum((line.line_total for line in lines), ZERO))


def calculate_tax(subtotal: Decimal) -> Decimal:
    return (subtotal * TAX_RATE).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_shipping(subtotal: Decimal) -> Decimal:
    if subtotal > FREE_SHIPPING_THRESHOLD:
        return ZERO
    return FLAT_SHIPPING_FEE


def compute_totals(lines: Sequence[PricedLine]) -> OrderTotals:
    """Subtotal, 18% tax, shipping and grand total for a cart snapshot."""
    subtotal = calculate_subtotal(lines)
    tax = calculate_tax(subtotal)
    shipping = calculate_shipping(subtotal)
    discount = ZERO
    total = to_money(subtotal - discount + tax + shipping)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=total,
    )


def split_cancellation(total_amount: Decimal) -> Tuple[Decimal, Decimal]:
    """Return ``(fee, refund)`` for an accepted cancellation.

    The refund is derived from the fee so the two always add up to the total.
    """
    total = to_money(total_amount)
    fee = (total * CANCELLATION_FEE_RATE).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    refund = total - fee
    return fee, refund
