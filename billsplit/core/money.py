"""
Fixed-point money helpers.

Amounts are Decimal values with a two-digit minor unit (cents).
Arithmetic that must divide an amount is done on integer minor units.
"""

from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Union

from billsplit.core.errors import InvalidAmountError

MINOR_UNIT = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100
ZERO = Decimal("0.00")

AmountLike = Union[Decimal, int, str, float]


def to_money(value: AmountLike, allow_negative: bool = False) -> Decimal:
    """
    Parse a user or caller supplied amount into a cent-precision Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its
    binary expansion.

    Raises:
        InvalidAmountError: non-numeric, non-finite, finer than one cent,
            or negative (unless allow_negative)
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, f"Amount must be a number, got {value!r}")

    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(value, f"Amount is not a number: {value!r}")
    else:
        raise InvalidAmountError(value, f"Amount must be a number, got {type(value).__name__}")

    if not parsed.is_finite():
        raise InvalidAmountError(value, f"Amount must be finite, got {value!r}")

    try:
        truncated = parsed.quantize(MINOR_UNIT, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise InvalidAmountError(value, f"Amount {value!r} is too large")
    if parsed != truncated:
        raise InvalidAmountError(value, f"Amount {value!r} is more precise than one cent")

    if parsed < 0 and not allow_negative:
        raise InvalidAmountError(value, f"Amount cannot be negative, got {value!r}")

    return truncated


def to_minor_units(amount: Decimal) -> int:
    """Convert a cent-precision Decimal to an integer number of cents."""
    return int(amount.quantize(MINOR_UNIT) * MINOR_UNITS_PER_MAJOR)


def from_minor_units(minor: int) -> Decimal:
    """Convert an integer number of cents back to a Decimal amount."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(MINOR_UNIT)
