"""
Position calculator.

Pure functions for margin, profit and stop-loss / take-profit evaluation.
"""

from decimal import Decimal

from app.models.enums import CloseReason, PositionSide
from app.utils.money import to_money


def side_sign(side: PositionSide | str) -> int:
    """+1 for long, -1 for short."""
    return 1 if PositionSide(side) == PositionSide.LONG else -1


def calculate_margin(notional: Decimal, leverage: int) -> Decimal:
    """Margin locked when opening: notional / leverage."""
    return to_money(notional / Decimal(leverage))


def calculate_profit(
    side: PositionSide | str,
    open_price: Decimal,
    mark_price: Decimal,
    leverage: int,
    notional: Decimal,
) -> Decimal:
    """
    Profit of a position at a mark price.

    profit = sign(side) * (mark - open) * leverage / open * notional

    Examples:
        long 1000 @ 2385.50 x100, mark 2385.50 -> 0
        long 1000 @ 2000 x10, mark 2010 -> 50.00
    """
    diff = (mark_price - open_price) * side_sign(side)
    return to_money(diff * leverage / open_price * notional)


def evaluate_triggers(
    side: PositionSide | str,
    mark_price: Decimal,
    stop_loss: Decimal | None,
    take_profit: Decimal | None,
) -> CloseReason | None:
    """
    Decide whether a position must close at a mark price.

    Stop-loss is checked first; when both levels are crossed in the same
    tick the stop-loss wins.

    Returns:
        CloseReason.STOP_LOSS, CloseReason.TAKE_PROFIT or None
    """
    is_long = PositionSide(side) == PositionSide.LONG

    if stop_loss is not None:
        if (is_long and mark_price <= stop_loss) or (
            not is_long and mark_price >= stop_loss
        ):
            return CloseReason.STOP_LOSS

    if take_profit is not None:
        if (is_long and mark_price >= take_profit) or (
            not is_long and mark_price <= take_profit
        ):
            return CloseReason.TAKE_PROFIT

    return None
