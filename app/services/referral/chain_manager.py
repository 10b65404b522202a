"""
Referral chain management module.

Walks the referrer links upwards from an account.
"""

import uuid

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.repositories.account_repository import AccountRepository
from app.services.referral.config import REFERRAL_DEPTH


class ReferralChainManager:
    """Manages referral chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.account_repo = AccountRepository(session)

    async def get_referral_chain(
        self, account_id: uuid.UUID, depth: int = REFERRAL_DEPTH
    ) -> list[Account]:
        """
        Get the ancestors of an account, direct referrer first.

        At most `depth` hops are followed. A referrer link pointing back
        into the chain (corrupted data) stops the walk instead of looping.

        Args:
            account_id: Account whose ancestors are wanted
            depth: Maximum number of ancestors

        Returns:
            List of accounts from direct referrer to Nth level
        """
        chain: list[Account] = []
        visited = {account_id}

        current = await self.account_repo.get_by_id(account_id)
        while current and current.referrer_id and len(chain) < depth:
            if current.referrer_id in visited:
                logger.warning(
                    "Referral loop detected",
                    extra={
                        "account_id": str(account_id),
                        "chain_ids": [str(a.id) for a in chain],
                    },
                )
                break

            referrer = await self.account_repo.get_by_id(current.referrer_id)
            if not referrer:
                break

            chain.append(referrer)
            visited.add(referrer.id)
            current = referrer

        logger.debug(
            "Referral chain retrieved",
            extra={
                "account_id": str(account_id),
                "depth": depth,
                "chain_length": len(chain),
            },
        )
        return chain

    async def get_downline_ids(
        self, account_id: uuid.UUID, depth: int = REFERRAL_DEPTH
    ) -> list[list[uuid.UUID]]:
        """
        Get referred account IDs level by level.

        Args:
            account_id: Root account
            depth: Number of levels below the root

        Returns:
            One list of IDs per level, level 1 first
        """
        levels: list[list[uuid.UUID]] = []
        seen = {account_id}
        frontier = [account_id]

        for _ in range(depth):
            referrals = await self.account_repo.get_direct_referrals(frontier)
            frontier = [a.id for a in referrals if a.id not in seen]
            if not frontier:
                break
            seen.update(frontier)
            levels.append(frontier)

        return levels
