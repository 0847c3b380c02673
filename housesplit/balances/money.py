"""Decimal helpers shared by the balance engine and the split builders."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# Smallest currency unit; also the band within which a balance counts as settled.
CENT = Decimal("0.01")
SETTLE_TOLERANCE = CENT

ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str]


def to_decimal(value: Amount) -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Amount) -> Decimal:
    """Round to whole cents, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def is_settled(value: Decimal) -> bool:
    return abs(value) < SETTLE_TOLERANCE
