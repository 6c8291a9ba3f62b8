"""
Money handling and presentation formatting.

Amounts are kept as Decimal at full precision. Rounding is applied only by
the formatting helpers at the presentation boundary.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Money = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_money(value: Money, field_name: str = "amount") -> Decimal:
    """Convert a numeric input to Decimal without losing its written value.

    Floats go through ``str`` so ``0.92`` becomes ``Decimal("0.92")`` rather
    than its binary approximation.

    Args:
        value: Amount as Decimal, int, float or numeric string
        field_name: Name used in error messages

    Returns:
        Finite Decimal amount

    Raises:
        ValueError: If the value is not numeric or not finite
    """
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got bool")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"{field_name} must be a number, got {value!r}")
    else:
        raise ValueError(f"{field_name} must be a number, got {type(value).__name__}")

    if not amount.is_finite():
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    return amount


def quantize_money(amount: Decimal) -> Decimal:
    """Round an amount to cents (half up) for display."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_ratio(ratio: Decimal, decimals: int = 4) -> str:
    """Format a ratio with a fixed number of decimals (half up)."""
    exponent = Decimal(1).scaleb(-decimals)
    return str(ratio.quantize(exponent, rounding=ROUND_HALF_UP))


def format_currency(amount: Decimal) -> str:
    """Format an amount in European style, e.g. ``1.234,56 €``."""
    rounded = quantize_money(amount)
    text = f"{abs(rounded):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{text} €"


def format_currency_usd(amount: Decimal) -> str:
    """Format an amount as US dollars, e.g. ``$1,234.56``."""
    rounded = quantize_money(amount)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"
