"""
Referral services package.

Contains modular services for referral processing:
- config: Configuration constants (REFERRAL_DEPTH, REFERRAL_RATES)
- calculator: Commission amounts per level and activity
- chain_manager: Handles referral chain operations
- commission_processor: Queues commissions for a chain
- earnings_manager: Disburses and cancels commissions
- monthly_bonus: Top performer bonus
- statistics: Provides statistics
"""

from app.services.referral.calculator import commission_rate, compute_commission
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.commission_processor import (
    ProcessResult,
    ReferralCommissionProcessor,
)
from app.services.referral.config import REFERRAL_DEPTH, REFERRAL_RATES
from app.services.referral.earnings_manager import ReferralEarningsManager
from app.services.referral.monthly_bonus import (
    MonthlyBonus,
    MonthlyBonusManager,
    select_top_performers,
)
from app.services.referral.statistics import (
    ReferralStatisticsManager,
    ReferralStats,
)


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    # Calculations
    "commission_rate",
    "compute_commission",
    # Managers
    "ReferralChainManager",
    "ReferralEarningsManager",
    "ReferralStatisticsManager",
    "ReferralStats",
    "MonthlyBonusManager",
    "MonthlyBonus",
    "select_top_performers",
    # Commission processing
    "ReferralCommissionProcessor",
    "ProcessResult",
]
