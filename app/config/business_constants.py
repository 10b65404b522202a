"""
Business logic constants for the GoldGrowth platform.

Central location for investment plans, referral rates and simulated market
prices. This module has no dependencies on services or models.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple


class InvestmentPlanCode(str, Enum):
    """Fixed-term investment plan identifiers."""

    THREE_DAYS = "3_days"
    SIX_DAYS = "6_days"
    TWELVE_DAYS = "12_days"


class InvestmentPlan(NamedTuple):
    """Fixed-term investment plan configuration."""

    code: InvestmentPlanCode
    name: str  # Display name
    duration_days: int
    daily_rate: Decimal  # Fraction, 0.055 = 5.5% per day
    min_amount: Decimal
    max_amount: Decimal
    return_rate: Decimal  # Total return at maturity, fraction of principal


INVESTMENT_PLANS: dict[InvestmentPlanCode, InvestmentPlan] = {
    InvestmentPlanCode.THREE_DAYS: InvestmentPlan(
        code=InvestmentPlanCode.THREE_DAYS,
        name="3 Days Plan",
        duration_days=3,
        daily_rate=Decimal("0.055"),
        min_amount=Decimal("2000"),
        max_amount=Decimal("5000"),
        return_rate=Decimal("0.165"),
    ),
    InvestmentPlanCode.SIX_DAYS: InvestmentPlan(
        code=InvestmentPlanCode.SIX_DAYS,
        name="6 Days Plan",
        duration_days=6,
        daily_rate=Decimal("0.075"),
        min_amount=Decimal("5000"),
        max_amount=Decimal("15000"),
        return_rate=Decimal("0.45"),
    ),
    InvestmentPlanCode.TWELVE_DAYS: InvestmentPlan(
        code=InvestmentPlanCode.TWELVE_DAYS,
        name="12 Days Plan",
        duration_days=12,
        daily_rate=Decimal("0.095"),
        min_amount=Decimal("15000"),
        max_amount=Decimal("50000"),
        return_rate=Decimal("1.14"),
    ),
}


def get_plan(code: str) -> InvestmentPlan | None:
    """
    Look up an investment plan by its code.

    Args:
        code: Plan code (e.g. "3_days")

    Returns:
        Plan configuration or None if the code is unknown
    """
    try:
        return INVESTMENT_PLANS[InvestmentPlanCode(code)]
    except ValueError:
        return None


# Early exit keeps this share of the interest earned so far
EARLY_EXIT_INTEREST_SHARE = Decimal("0.8")

# Simulated market base prices
BASE_PRICES: dict[str, Decimal] = {
    "XAUUSD": Decimal("2385.50"),
    "XAGUSD": Decimal("31.25"),
    "BTCUSD": Decimal("67500.00"),
    "ETHUSD": Decimal("3850.00"),
}
DEFAULT_BASE_PRICE = Decimal("2385.50")

# Random walk never drops below this share of the base price
PRICE_FLOOR_RATIO = Decimal("0.95")
