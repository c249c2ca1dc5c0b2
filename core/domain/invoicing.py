"""
FieldOps Core Domain — Invoice Arithmetic
===========================================
subtotal = Σ(quantity × unit_price)
total    = subtotal × (1 + tax_rate / 100)

Both are rounded half-up to cents at write time.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple, Union

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats like 8.25 from turning into 8.2499999...
    return Decimal(str(value))


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_items_subtotal(line_items: Iterable) -> Decimal:
    return sum(
        (to_decimal(li.quantity) * to_decimal(li.unit_price) for li in line_items),
        Decimal("0"),
    )


def build_invoice_totals(line_items: Iterable, tax_rate: Number) -> Tuple[Decimal, Decimal]:
    """Return (subtotal, total) for a set of line items and a percent tax rate."""
    rate = to_decimal(tax_rate)
    if rate < 0:
        raise ValueError(f"Tax rate must be non-negative, got {rate}.")
    subtotal = line_items_subtotal(line_items)
    total = subtotal * (Decimal("1") + rate / Decimal("100"))
    return to_cents(subtotal), to_cents(total)
