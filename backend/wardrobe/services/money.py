from __future__ import annotations

from collections.abc import Iterable


# Amount columns are 32-bit integers on every backend.
MAX_CENTS = 2**31 - 1
MAX_QUANTITY = 1_000


def line_amount_cents(*, unit_price_cents: int, quantity: int) -> int:
    if unit_price_cents < 0:
        raise ValueError("unit_price_cents must be >= 0")
    if quantity < 1:
        raise ValueError("quantity must be >= 1")
    return unit_price_cents * quantity


def order_total_cents(lines: Iterable[tuple[int, int]]) -> int:
    """
    Sum of unit price x quantity over (unit_price_cents, quantity) pairs.

    Rental is priced per unit, not per day.
    """
    return sum(line_amount_cents(unit_price_cents=price, quantity=qty) for price, qty in lines)


def fits_amount_column(cents: int) -> bool:
    return 0 <= cents <= MAX_CENTS
