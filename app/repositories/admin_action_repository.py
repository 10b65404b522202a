"""
Admin action repository.

Data access layer for AdminAction model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin_action import AdminAction
from app.repositories.base import BaseRepository


class AdminActionRepository(BaseRepository[AdminAction]):
    """Admin action repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize admin action repository."""
        super().__init__(AdminAction, session)

    async def get_recent(self, limit: int = 50) -> list[AdminAction]:
        """
        Get the latest admin actions, newest first.

        Args:
            limit: Max number of results

        Returns:
            List of admin actions
        """
        stmt = (
            select(AdminAction)
            .order_by(AdminAction.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_target(
        self, target_type: str, target_id: str
    ) -> list[AdminAction]:
        """
        Get actions performed on one entity, oldest first.

        Args:
            target_type: Entity type, e.g. "account"
            target_id: Entity ID as a string

        Returns:
            List of admin actions
        """
        stmt = (
            select(AdminAction)
            .where(
                AdminAction.target_type == target_type,
                AdminAction.target_id == target_id,
            )
            .order_by(AdminAction.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
