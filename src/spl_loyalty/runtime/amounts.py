"""
Unit conversion helpers.

- to_base_units / from_base_units convert between human token amounts and
  integer base units for a mint with the given number of decimals.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from .errors import ValidationError

Amount = Union[int, float, str, Decimal]

U64_MAX = 2**64 - 1


def to_base_units(amount: Amount, decimals: int) -> int:
    """
    Convert a human-readable amount (e.g. "12.5") to integer base units.

    Floats go through str() first so 0.1 stays 0.1 instead of its binary
    expansion. Precision beyond the mint's decimals is dropped.

    Raises:
        ValidationError: If the amount is not a number, not positive or does
            not fit in a u64
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid amount: {amount!r}", cause=e)
    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")

    details = {"amount": str(amount), "decimals": decimals}
    scaled = value.scaleb(decimals)
    # checked before quantize, which fails on values wider than the context precision
    if scaled >= U64_MAX + 1:
        raise ValidationError("Amount exceeds the maximum token supply", details=details)

    units = int(scaled.quantize(Decimal("1"), rounding=ROUND_DOWN))
    if units <= 0:
        raise ValidationError("Amount must be > 0", details=details)
    return units


def from_base_units(units: int, decimals: int) -> Decimal:
    """Convert integer base units back to a human amount."""
    return Decimal(units) / (Decimal(10) ** decimals)
