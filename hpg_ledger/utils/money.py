"""Fixed-point currency helpers. All amounts are whole rupees held in ints."""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

_NON_DIGITS = re.compile(r"[^\d]")


def to_decimal(value: Number) -> Decimal:
    """Convert without picking up binary float noise (12.1 stays 12.1)"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number) -> int:
    """Round to the nearest currency unit, halves away from zero"""
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_amount(formatted: str) -> int:
    """
    Parse a display-formatted amount by dropping every non-digit character.

    "₹ 12,500" -> 12500. A string without digits parses to 0.
    """
    digits = _NON_DIGITS.sub("", formatted or "")
    return int(digits) if digits else 0


def amount_in_words(amount: int) -> str:
    """
    Spell an amount in the Indian numbering system for vouchers.

    Example:
        12345678 → "1 Crore 23 Lakh 45 Thousand 678 Only"
    """
    if amount == 0:
        return "Zero"

    words = []
    remaining = amount
    for divisor, unit in ((10_000_000, "Crore"), (100_000, "Lakh"), (1_000, "Thousand")):
        if remaining >= divisor:
            words.append(f"{remaining // divisor} {unit}")
            remaining %= divisor
    if remaining > 0:
        words.append(str(remaining))

    return " ".join(words) + " Only"
