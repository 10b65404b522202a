"""
Fixed-term investment services package.

- calculator: return, interest and early exit amounts
- engine: contract lifecycle and the accrual / maturation cycles
"""

from app.services.investment.calculator import (
    calculate_daily_interest,
    calculate_early_exit_payout,
    calculate_total_return,
    days_elapsed,
)
from app.services.investment.engine import InvestmentEngine


__all__ = [
    "InvestmentEngine",
    "calculate_daily_interest",
    "calculate_early_exit_payout",
    "calculate_total_return",
    "days_elapsed",
]
