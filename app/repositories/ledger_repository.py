"""
Ledger repository.

Data access layer for LedgerEntry model.
"""

import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import LedgerEntryStatus
from app.models.ledger_entry import LedgerEntry
from app.repositories.base import BaseRepository


class LedgerRepository(BaseRepository[LedgerEntry]):
    """Ledger repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger repository."""
        super().__init__(LedgerEntry, session)

    async def get_account_history(
        self,
        account_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """
        Get ledger entries for an account, newest first.

        Args:
            account_id: Account ID
            limit: Page size
            offset: Number of entries to skip

        Returns:
            List of ledger entries
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_completed_sum(self, account_id: uuid.UUID) -> Decimal:
        """
        Sum of all completed entries for an account.

        Args:
            account_id: Account ID

        Returns:
            Signed sum of completed entry amounts
        """
        stmt = (
            select(func.sum(LedgerEntry.amount))
            .where(LedgerEntry.account_id == account_id)
            .where(LedgerEntry.status == LedgerEntryStatus.COMPLETED.value)
        )
        result = await self.session.execute(stmt)
        total = result.scalar()
        return Decimal(total) if total is not None else Decimal("0")

    async def get_by_reference(
        self, account_id: uuid.UUID, reference: str
    ) -> LedgerEntry | None:
        """
        Get entry by its idempotency reference.

        Args:
            account_id: Account ID
            reference: Idempotency key

        Returns:
            LedgerEntry or None
        """
        return await self.get_by(account_id=account_id, reference=reference)
