"""Display helpers shared by the UI."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def format_currency(value: Union[Decimal, int, float]) -> str:
    """
    Render an amount as Brazilian Real.

    >>> format_currency(Decimal("1234.5"))
    'R$ 1.234,50'
    """
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    # Swap the US separators for the Brazilian ones
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {digits}"


def format_signed_currency(value: Union[Decimal, int, float]) -> str:
    """Amount with an explicit sign, as used for daily totals."""
    amount = Decimal(str(value))
    prefix = "+" if amount > 0 else ""
    return f"{prefix}{format_currency(amount)}"
