"""
Referral system configuration.

Contains constants and configuration for the GoldGrowth Network referral system.
"""

from decimal import Decimal

# 3-level referral program, rates applied to the activity amount
REFERRAL_DEPTH = 3
REFERRAL_RATES = {
    1: Decimal("0.15"),  # 15% for level 1 (direct referrals)
    2: Decimal("0.10"),  # 10% for level 2
    3: Decimal("0.05"),  # 5% for level 3
}

# Deposit activity pays 1.5x the level rate
DEPOSIT_RATE_MULTIPLIER = Decimal("1.5")

# Bonus activity ignores the level and pays a flat rate
BONUS_ACTIVITY_RATE = Decimal("0.02")

# Monthly bonus: top 10% of earners receive 2% of their monthly commissions
MONTHLY_BONUS_TOP_SHARE = Decimal("0.1")
MONTHLY_BONUS_RATE = Decimal("0.02")
