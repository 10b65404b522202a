"""
Account repository.

Data access layer for Account model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_username(self, username: str) -> Account | None:
        """
        Get account by username.

        Args:
            username: Unique username

        Returns:
            Account or None
        """
        return await self.get_by(username=username)

    async def get_by_referral_code(self, code: str) -> Account | None:
        """
        Get account by referral code.

        Args:
            code: Referral code

        Returns:
            Account or None
        """
        return await self.get_by(referral_code=code)

    async def get_direct_referrals(
        self, account_ids: list[uuid.UUID]
    ) -> list[Account]:
        """
        Get accounts directly referred by any of the given accounts.

        Args:
            account_ids: Referrer account IDs

        Returns:
            List of referred accounts, oldest first
        """
        if not account_ids:
            return []

        stmt = (
            select(Account)
            .where(Account.referrer_id.in_(account_ids))
            .order_by(Account.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
