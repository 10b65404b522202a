"""
Model enumerations.

Values are stored as plain strings in the database.
"""

from enum import Enum


class AccountStatus(str, Enum):
    """Account lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class LedgerEntryKind(str, Enum):
    """Kind of balance change."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRADE_MARGIN = "trade_margin"
    TRADE_SETTLEMENT = "trade_settlement"
    INTEREST = "interest"
    COMMISSION = "commission"
    BONUS = "bonus"


class LedgerEntryStatus(str, Enum):
    """Ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PositionSide(str, Enum):
    """Position direction."""

    LONG = "long"
    SHORT = "short"


class PositionStatus(str, Enum):
    """Position lifecycle status."""

    OPEN = "open"
    CLOSED = "closed"


class CloseReason(str, Enum):
    """Why a position was closed."""

    MANUAL = "manual"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


class InvestmentStatus(str, Enum):
    """Fixed-term investment lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RENEWED = "renewed"


class ActivityType(str, Enum):
    """Activity that generated a referral commission."""

    TRADING = "trading"
    DEPOSIT = "deposit"
    BONUS = "bonus"


class CommissionStatus(str, Enum):
    """Referral commission status."""

    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"
