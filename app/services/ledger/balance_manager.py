"""
Balance manager.

The only code path that mutates Account.balance. Every mutation locks the
account row, applies the change and appends a completed ledger entry in
the caller's transaction; committing is left to the caller's unit of work.
"""

import uuid
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.enums import LedgerEntryKind, LedgerEntryStatus
from app.models.ledger_entry import LedgerEntry
from app.repositories.account_repository import AccountRepository
from app.utils.exceptions import InsufficientFunds, InvalidAmount, NotFound
from app.utils.money import ZERO, parse_money, to_money


def _positive_amount(amount: Decimal | int | str) -> Decimal:
    """Normalize an amount and reject zero, negative or malformed values."""
    value = parse_money(amount)
    if value <= ZERO:
        raise InvalidAmount(f"Amount must be positive, got {value}")
    return value


class BalanceManager:
    """Applies credits and debits to account balances."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize balance manager."""
        self.session = session
        self.account_repo = AccountRepository(session)

    async def lock_account(self, account_id: uuid.UUID) -> Account:
        """
        Load an account with a row lock.

        Args:
            account_id: Account ID

        Returns:
            Locked account

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_for_update(account_id)
        if not account:
            raise NotFound(f"Account {account_id} not found")
        return account

    async def credit(
        self,
        account_id: uuid.UUID,
        amount: Decimal | int | str,
        kind: LedgerEntryKind,
        description: str = "",
        reference: str | None = None,
    ) -> LedgerEntry:
        """
        Increase balance and record the entry.

        Args:
            account_id: Account to credit
            amount: Positive amount
            kind: Ledger entry kind
            description: Human readable description
            reference: Optional idempotency key, unique per account

        Returns:
            Appended ledger entry

        Raises:
            InvalidAmount: If amount is not positive
            NotFound: If the account does not exist
        """
        value = _positive_amount(amount)
        account = await self.lock_account(account_id)

        account.balance = to_money(account.balance + value)
        entry = await self._append_entry(
            account, value, kind, description, reference=reference
        )

        logger.debug(
            "Balance credited",
            extra={
                "account_id": str(account_id),
                "amount": str(value),
                "kind": kind.value,
                "balance_after": str(account.balance),
            },
        )
        return entry

    async def debit(
        self,
        account_id: uuid.UUID,
        amount: Decimal | int | str,
        kind: LedgerEntryKind,
        description: str = "",
        fee: Decimal = ZERO,
        reference: str | None = None,
    ) -> LedgerEntry:
        """
        Decrease balance and record the entry.

        The balance never goes negative: a debit larger than the balance
        fails and leaves both the balance and the ledger untouched.

        Args:
            account_id: Account to debit
            amount: Positive amount
            kind: Ledger entry kind
            description: Human readable description
            fee: Fee recorded on the entry (already included in amount)
            reference: Optional idempotency key, unique per account

        Returns:
            Appended ledger entry

        Raises:
            InvalidAmount: If amount is not positive
            InsufficientFunds: If amount exceeds the balance
            NotFound: If the account does not exist
        """
        value = _positive_amount(amount)
        account = await self.lock_account(account_id)

        if value > account.balance:
            raise InsufficientFunds(
                f"Insufficient funds: balance {account.balance}, "
                f"requested {value}"
            )

        account.balance = to_money(account.balance - value)
        entry = await self._append_entry(
            account, -value, kind, description, fee=fee, reference=reference
        )

        logger.debug(
            "Balance debited",
            extra={
                "account_id": str(account_id),
                "amount": str(value),
                "kind": kind.value,
                "balance_after": str(account.balance),
            },
        )
        return entry

    async def _append_entry(
        self,
        account: Account,
        amount: Decimal,
        kind: LedgerEntryKind,
        description: str,
        fee: Decimal = ZERO,
        reference: str | None = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            account_id=account.id,
            amount=amount,
            fee=to_money(fee),
            balance_after=account.balance,
            kind=kind.value,
            status=LedgerEntryStatus.COMPLETED.value,
            description=description,
            reference=reference,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry
