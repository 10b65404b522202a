"""
Position repository.

Data access layer for Position model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PositionStatus
from app.models.position import Position
from app.repositories.base import BaseRepository


class PositionRepository(BaseRepository[Position]):
    """Position repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize position repository."""
        super().__init__(Position, session)

    async def get_by_account(
        self, account_id: uuid.UUID, status: str | None = None
    ) -> list[Position]:
        """
        Get positions of an account, newest first.

        Args:
            account_id: Account ID
            status: Optional status filter

        Returns:
            List of positions
        """
        stmt = select(Position).where(Position.account_id == account_id)
        if status:
            stmt = stmt.where(Position.status == status)
        stmt = stmt.order_by(Position.opened_at.desc())

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_open_position_ids(self) -> list[uuid.UUID]:
        """
        Get IDs of all open positions, oldest first.

        Returns:
            List of position IDs
        """
        stmt = (
            select(Position.id)
            .where(Position.status == PositionStatus.OPEN.value)
            .order_by(Position.opened_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
