"""
Ledger services package.

- balance_manager: credit/debit primitives shared by every engine
- service: funding, admin adjustments, history and reconciliation
"""

from app.services.ledger.balance_manager import BalanceManager
from app.services.ledger.service import LedgerService, ReconciliationReport


__all__ = [
    "BalanceManager",
    "LedgerService",
    "ReconciliationReport",
]
