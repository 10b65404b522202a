"""
Investment repository.

Data access layer for Investment model.
"""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import InvestmentStatus
from app.models.investment import Investment
from app.repositories.base import BaseRepository


class InvestmentRepository(BaseRepository[Investment]):
    """Investment repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment repository."""
        super().__init__(Investment, session)

    async def get_by_account(
        self, account_id: uuid.UUID
    ) -> list[Investment]:
        """
        Get investments of an account, newest first.

        Args:
            account_id: Account ID

        Returns:
            List of investments
        """
        stmt = (
            select(Investment)
            .where(Investment.account_id == account_id)
            .order_by(Investment.start_date.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_accruing_ids(self, now: datetime) -> list[uuid.UUID]:
        """
        Get IDs of active investments inside their term (start <= now < end).

        Args:
            now: Reference time

        Returns:
            List of investment IDs, oldest first
        """
        stmt = (
            select(Investment.id)
            .where(
                Investment.status == InvestmentStatus.ACTIVE.value,
                Investment.start_date <= now,
                Investment.end_date > now,
            )
            .order_by(Investment.start_date)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_matured_ids(self, now: datetime) -> list[uuid.UUID]:
        """
        Get IDs of active investments whose term has ended (end <= now).

        Args:
            now: Reference time

        Returns:
            List of investment IDs, by end date
        """
        stmt = (
            select(Investment.id)
            .where(
                Investment.status == InvestmentStatus.ACTIVE.value,
                Investment.end_date <= now,
            )
            .order_by(Investment.end_date)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
