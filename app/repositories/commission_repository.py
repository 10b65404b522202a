"""
Commission repository.

Data access layer for Commission model.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.commission import Commission
from app.models.enums import AccountStatus, CommissionStatus
from app.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_payable_ids(self, limit: int | None = None) -> list[uuid.UUID]:
        """
        Get IDs of pending commissions owed to active accounts.

        Commissions of suspended or inactive beneficiaries stay pending
        and are left out so they never fill up a batch.

        Args:
            limit: Optional batch size

        Returns:
            List of commission IDs in creation order
        """
        stmt = (
            select(Commission.id)
            .join(Account, Account.id == Commission.beneficiary_account_id)
            .where(
                Commission.status == CommissionStatus.PENDING.value,
                Account.status == AccountStatus.ACTIVE.value,
            )
            .order_by(Commission.created_at)
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_beneficiary(
        self, beneficiary_account_id: uuid.UUID, status: str | None = None
    ) -> list[Commission]:
        """
        Get commissions earned by an account, oldest first.

        Args:
            beneficiary_account_id: Beneficiary account ID
            status: Optional status filter

        Returns:
            List of commissions
        """
        stmt = select(Commission).where(
            Commission.beneficiary_account_id == beneficiary_account_id
        )
        if status:
            stmt = stmt.where(Commission.status == status)
        stmt = stmt.order_by(Commission.created_at)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_paid_totals_by_beneficiary(
        self, start: datetime, end: datetime, active_only: bool = False
    ) -> list[tuple[uuid.UUID, Decimal]]:
        """
        Sum paid commissions per beneficiary for a period.

        Args:
            start: Period start (inclusive, by creation time)
            end: Period end (exclusive)
            active_only: Leave out beneficiaries that are not active

        Returns:
            List of (beneficiary_account_id, total) tuples, largest first
        """
        total = func.sum(Commission.amount).label("total")
        stmt = (
            select(Commission.beneficiary_account_id, total)
            .where(
                Commission.status == CommissionStatus.PAID.value,
                Commission.created_at >= start,
                Commission.created_at < end,
            )
            .group_by(Commission.beneficiary_account_id)
            .order_by(total.desc())
        )
        if active_only:
            stmt = stmt.join(
                Account, Account.id == Commission.beneficiary_account_id
            ).where(Account.status == AccountStatus.ACTIVE.value)

        result = await self.session.execute(stmt)
        return [(row[0], Decimal(row[1])) for row in result.all()]

    async def get_paid_sum(
        self,
        beneficiary_account_id: uuid.UUID,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Decimal:
        """
        Sum of paid commissions earned by an account.

        Args:
            beneficiary_account_id: Beneficiary account ID
            start: Optional period start (inclusive, by creation time)
            end: Optional period end (exclusive)

        Returns:
            Total paid amount
        """
        stmt = select(func.sum(Commission.amount)).where(
            Commission.beneficiary_account_id == beneficiary_account_id,
            Commission.status == CommissionStatus.PAID.value,
        )
        if start is not None:
            stmt = stmt.where(Commission.created_at >= start)
        if end is not None:
            stmt = stmt.where(Commission.created_at < end)

        result = await self.session.execute(stmt)
        total = result.scalar()
        return Decimal(total) if total is not None else Decimal("0")

    async def get_paid_level_breakdown(
        self, beneficiary_account_id: uuid.UUID
    ) -> dict[int, Decimal]:
        """
        Paid commission totals per chain level.

        Args:
            beneficiary_account_id: Beneficiary account ID

        Returns:
            Dict of level -> total paid
        """
        stmt = (
            select(Commission.level, func.sum(Commission.amount))
            .where(
                Commission.beneficiary_account_id == beneficiary_account_id,
                Commission.status == CommissionStatus.PAID.value,
            )
            .group_by(Commission.level)
            .order_by(Commission.level)
        )
        result = await self.session.execute(stmt)
        return {row[0]: Decimal(row[1]) for row in result.all()}
