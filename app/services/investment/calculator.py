"""
Investment calculator module.

Handles fixed-term return calculations.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from app.config.business_constants import EARLY_EXIT_INTEREST_SHARE, InvestmentPlan
from app.utils.money import to_money


def calculate_total_return(amount: Decimal, plan: InvestmentPlan) -> Decimal:
    """
    Amount paid at maturity: principal x (1 + return_rate).

    Example: 2000 on the 3 day plan (16.5%) -> 2330.00
    """
    return to_money(amount * (1 + plan.return_rate))


def calculate_daily_interest(amount: Decimal, daily_rate: Decimal) -> Decimal:
    """One day of interest on the principal."""
    return to_money(amount * daily_rate)


def days_elapsed(
    start: datetime, now: datetime, max_days: int | None = None
) -> int:
    """
    Whole days between start and now, never negative.

    Args:
        start: Contract start
        now: Reference time
        max_days: Optional cap (contract duration)
    """
    days = max((now - start) // timedelta(days=1), 0)
    if max_days is not None:
        days = min(days, max_days)
    return days


def calculate_early_exit_payout(
    amount: Decimal, daily_rate: Decimal, elapsed_days: int
) -> Decimal:
    """
    Principal plus 80% of the interest earned so far.

    Example: 2000 at 5.5% after 3 days -> 2000 + 0.8 x 330 = 2264.00
    """
    earned = amount * daily_rate * elapsed_days
    return to_money(amount + earned * EARLY_EXIT_INTEREST_SHARE)
