"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    CycleResult,
    log_operation,
    transaction,
)

# Core Services
from app.services.account_service import AccountService
from app.services.admin_log_service import AdminLogService
from app.services.admin_stats_service import (
    AdminDashboardData,
    AdminDashboardStats,
    AdminStatsService,
)
from app.services.investment import InvestmentEngine
from app.services.ledger import BalanceManager, LedgerService
from app.services.pricing import (
    PriceSource,
    Quote,
    RandomWalkPriceSource,
    StaticPriceSource,
)
from app.services.referral import (
    MonthlyBonusManager,
    ReferralChainManager,
    ReferralCommissionProcessor,
    ReferralEarningsManager,
    ReferralStatisticsManager,
)
from app.services.trading import PositionEngine


__all__ = [
    # Base
    "BaseService",
    "CycleResult",
    "log_operation",
    "transaction",
    # Ledger
    "BalanceManager",
    "LedgerService",
    "AccountService",
    # Admin
    "AdminDashboardData",
    "AdminDashboardStats",
    "AdminLogService",
    "AdminStatsService",
    # Trading
    "PositionEngine",
    "PriceSource",
    "Quote",
    "RandomWalkPriceSource",
    "StaticPriceSource",
    # Investments
    "InvestmentEngine",
    # Referral
    "MonthlyBonusManager",
    "ReferralChainManager",
    "ReferralCommissionProcessor",
    "ReferralEarningsManager",
    "ReferralStatisticsManager",
]
