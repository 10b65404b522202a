"""
Referral commission calculator.

Pure functions, no database access.
"""

from decimal import Decimal

from app.models.enums import ActivityType
from app.services.referral.config import (
    BONUS_ACTIVITY_RATE,
    DEPOSIT_RATE_MULTIPLIER,
    REFERRAL_RATES,
)
from app.utils.money import ZERO, to_money


def commission_rate(level: int, activity_type: ActivityType | str) -> Decimal:
    """
    Effective commission rate for a chain level and activity.

    Levels outside 1..3 earn nothing regardless of activity.
    """
    base_rate = REFERRAL_RATES.get(level)
    if base_rate is None:
        return ZERO

    activity = ActivityType(activity_type)
    if activity == ActivityType.DEPOSIT:
        return base_rate * DEPOSIT_RATE_MULTIPLIER
    if activity == ActivityType.BONUS:
        return BONUS_ACTIVITY_RATE
    return base_rate


def compute_commission(
    activity_amount: Decimal,
    level: int,
    activity_type: ActivityType | str,
) -> Decimal:
    """
    Commission owed to the ancestor at `level` for an activity.

    Args:
        activity_amount: Trade notional or deposit principal
        level: 1 for the direct referrer, up to 3
        activity_type: trading, deposit or bonus

    Returns:
        Commission amount quantized to money precision, 0 beyond level 3

    Examples:
        compute_commission(Decimal("1000"), 1, "trading") -> 150.00
        compute_commission(Decimal("1000"), 2, "deposit") -> 150.00
        compute_commission(Decimal("1000"), 4, "trading") -> 0
    """
    rate = commission_rate(level, activity_type)
    if rate == ZERO:
        return ZERO
    return to_money(Decimal(activity_amount) * rate)
