"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.account import Account
from app.models.admin_action import AdminAction
from app.models.base import Base
from app.models.commission import Commission
from app.models.enums import (
    AccountStatus,
    ActivityType,
    CloseReason,
    CommissionStatus,
    InvestmentStatus,
    LedgerEntryKind,
    LedgerEntryStatus,
    PositionSide,
    PositionStatus,
)
from app.models.investment import Investment
from app.models.ledger_entry import LedgerEntry
from app.models.position import Position

__all__ = [
    # Base
    "Base",
    # Enums
    "AccountStatus",
    "ActivityType",
    "CloseReason",
    "CommissionStatus",
    "InvestmentStatus",
    "LedgerEntryKind",
    "LedgerEntryStatus",
    "PositionSide",
    "PositionStatus",
    # Core Models
    "Account",
    "LedgerEntry",
    "Position",
    "Investment",
    "Commission",
    # Audit
    "AdminAction",
]
