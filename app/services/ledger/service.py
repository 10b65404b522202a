"""
Ledger service.

External funding, administrative adjustments, account history and
balance reconciliation on top of the balance manager.
"""

import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import LedgerEntryKind
from app.models.ledger_entry import LedgerEntry
from app.repositories.account_repository import AccountRepository
from app.repositories.ledger_repository import LedgerRepository
from app.services.admin_log_service import (
    BALANCE_ADJUSTMENT,
    SYSTEM_ADMIN,
    AdminLogService,
)
from app.services.base_service import BaseService, transaction
from app.services.ledger.balance_manager import BalanceManager
from app.utils.exceptions import AmountOutOfRange, InvalidAmount, NotFound
from app.utils.money import ZERO, parse_money, to_money


@dataclass
class ReconciliationReport:
    """Balance versus ledger comparison for one account."""

    account_id: uuid.UUID
    balance: Decimal
    ledger_sum: Decimal
    difference: Decimal

    @property
    def is_consistent(self) -> bool:
        """True when the balance equals the sum of completed entries."""
        return self.difference == ZERO


class LedgerService(BaseService):
    """Funding and reporting operations on the ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger service."""
        super().__init__(session)
        self.balance_manager = BalanceManager(session)
        self.account_repo = AccountRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.admin_log = AdminLogService(session)

    @transaction
    async def deposit(
        self,
        account_id: uuid.UUID,
        amount: Decimal,
        description: str = "Deposit",
    ) -> LedgerEntry:
        """
        Fund an account from outside the platform.

        Raises:
            AmountOutOfRange: If amount is outside the deposit corridor
        """
        value = parse_money(amount)
        if value < settings.min_deposit or value > settings.max_deposit:
            raise AmountOutOfRange(
                f"Deposit must be between {settings.min_deposit} "
                f"and {settings.max_deposit}"
            )

        entry = await self.balance_manager.credit(
            account_id, value, LedgerEntryKind.DEPOSIT, description
        )
        self.logger.info(
            f"Deposit of {value} credited to account {account_id}",
            extra={"account_id": str(account_id), "amount": str(value)},
        )
        return entry

    @transaction
    async def withdraw(
        self,
        account_id: uuid.UUID,
        amount: Decimal,
        description: str = "Withdrawal",
    ) -> LedgerEntry:
        """
        Withdraw funds. The gross amount leaves the balance and the fee
        is recorded on the entry.

        Raises:
            AmountOutOfRange: If amount is below the minimum withdrawal
            InsufficientFunds: If amount exceeds the balance
        """
        value = parse_money(amount)
        if value < settings.min_withdrawal:
            raise AmountOutOfRange(
                f"Minimum withdrawal is {settings.min_withdrawal}"
            )

        fee = to_money(value * settings.withdrawal_fee_percent / Decimal("100"))
        entry = await self.balance_manager.debit(
            account_id,
            value,
            LedgerEntryKind.WITHDRAWAL,
            description,
            fee=fee,
        )
        self.logger.info(
            f"Withdrawal of {value} debited from account {account_id}",
            extra={
                "account_id": str(account_id),
                "amount": str(value),
                "fee": str(fee),
            },
        )
        return entry

    @transaction
    async def adjust_balance(
        self,
        account_id: uuid.UUID,
        delta: Decimal,
        reason: str,
        admin_id: str = SYSTEM_ADMIN,
        ip_address: str | None = None,
    ) -> LedgerEntry:
        """
        Apply an administrative balance correction.

        Positive deltas are recorded as bonus credits, negative deltas as
        withdrawals, so the ledger still explains the balance. The change
        is written to the admin audit trail in the same transaction.
        """
        value = parse_money(delta)
        if value == ZERO:
            raise InvalidAmount("Adjustment must be non-zero")

        description = f"Admin adjustment: {reason}"
        if value > ZERO:
            entry = await self.balance_manager.credit(
                account_id, value, LedgerEntryKind.BONUS, description
            )
        else:
            entry = await self.balance_manager.debit(
                account_id, -value, LedgerEntryKind.WITHDRAWAL, description
            )

        await self.admin_log.log_action(
            admin_id,
            BALANCE_ADJUSTMENT,
            target_type="account",
            target_id=account_id,
            details={
                "delta": str(value),
                "reason": reason,
                "balance_after": str(entry.balance_after),
                "ledger_entry_id": str(entry.id),
            },
            ip_address=ip_address,
        )

        self.logger.warning(
            f"Balance of account {account_id} adjusted by {value}",
            extra={
                "account_id": str(account_id),
                "reason": reason,
                "admin_id": admin_id,
            },
        )
        return entry

    async def get_history(
        self,
        account_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """Ledger entries of an account, newest first."""
        return await self.ledger_repo.get_account_history(
            account_id, limit=limit, offset=offset
        )

    async def reconcile(self, account_id: uuid.UUID) -> ReconciliationReport:
        """
        Compare an account's balance with its completed ledger entries.

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFound(f"Account {account_id} not found")

        ledger_sum = to_money(
            await self.ledger_repo.get_completed_sum(account_id)
        )
        balance = to_money(account.balance)
        report = ReconciliationReport(
            account_id=account_id,
            balance=balance,
            ledger_sum=ledger_sum,
            difference=balance - ledger_sum,
        )

        if not report.is_consistent:
            self.logger.error(
                f"Ledger mismatch for account {account_id}",
                extra={
                    "balance": str(balance),
                    "ledger_sum": str(ledger_sum),
                    "difference": str(report.difference),
                },
            )
        return report
