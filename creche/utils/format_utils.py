"""
Formatting helpers shared by the gateways and the API.
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal]


def only_digits(value: Optional[str]) -> Optional[str]:
    """Strip punctuation from CPF/CNPJ and phone numbers."""
    if value is None:
        return None
    digits = re.sub(r"\D", "", value)
    return digits or None


def to_cents(value: Number) -> Decimal:
    """Round a monetary value to two decimals (half up)."""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_brl(value: Number) -> str:
    """
    Format a value as Brazilian reais.

    >>> format_brl(1299.9)
    'R$ 1.299,90'
    """
    amount = to_cents(value)
    sign = "-" if amount < 0 else ""
    integer, cents = f"{abs(amount):.2f}".split(".")
    groups = []
    while integer:
        groups.insert(0, integer[-3:])
        integer = integer[:-3]
    return f"{sign}R$ {'.'.join(groups)},{cents}"
