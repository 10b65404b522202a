"""
Money helpers.

All amounts are Decimal values quantized to the precision of MoneyType.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.utils.exceptions import InvalidAmount

MONEY_QUANT = Decimal("0.00000001")
ZERO = Decimal("0")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Convert a value to a quantized money Decimal.

    Floats are rejected so rounding drift never reaches the ledger.

    Args:
        value: Decimal, int or numeric string

    Returns:
        Decimal quantized to 8 decimal places
    """
    if isinstance(value, float):
        raise TypeError("Money values must not be floats")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
        return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid money value: {value!r}") from exc


def parse_money(value: Decimal | int | str) -> Decimal:
    """
    Convert caller input to money, raising InvalidAmount on bad input.

    Raises:
        InvalidAmount: value is a float, malformed or not finite
    """
    try:
        amount = to_money(value)
    except (TypeError, ValueError) as e:
        raise InvalidAmount(f"Invalid amount: {value!r}") from e

    if not amount.is_finite():
        raise InvalidAmount(f"Invalid amount: {value!r}")
    return amount


def format_money(value: Decimal) -> str:
    """Format a money value with two decimals for display."""
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"
