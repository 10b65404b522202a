"""
Referral statistics module.

Network size and commission totals for one account.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import AccountStatus
from app.repositories.account_repository import AccountRepository
from app.repositories.commission_repository import CommissionRepository
from app.services.referral.chain_manager import ReferralChainManager
from app.utils.datetime_utils import month_bounds, utc_now
from app.utils.exceptions import NotFound


@dataclass
class ReferralStats:
    """Referral statistics for one account."""

    total_referrals: int
    active_referrals: int
    total_commissions: Decimal
    monthly_commissions: Decimal
    level_breakdown: dict[int, Decimal] = field(default_factory=dict)


class ReferralStatisticsManager:
    """Manages referral statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.account_repo = AccountRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.chain_manager = ReferralChainManager(session)

    async def get_referral_stats(
        self, account_id: uuid.UUID, now: datetime | None = None
    ) -> ReferralStats:
        """
        Get referral statistics for an account.

        Args:
            account_id: Account ID
            now: Reference time for the current month

        Returns:
            ReferralStats with network counts and paid commissions

        Raises:
            NotFound: If the account does not exist
        """
        if not await self.account_repo.exists(id=account_id):
            raise NotFound(f"Account {account_id} not found")

        now = now or utc_now()
        downline = await self.chain_manager.get_downline_ids(account_id)
        total_referrals = sum(len(level) for level in downline)

        active_referrals = await self.account_repo.count(
            referrer_id=account_id, status=AccountStatus.ACTIVE.value
        )

        start, end = month_bounds(now.year, now.month)
        total_commissions = await self.commission_repo.get_paid_sum(account_id)
        monthly_commissions = await self.commission_repo.get_paid_sum(
            account_id, start=start, end=end
        )
        level_breakdown = await self.commission_repo.get_paid_level_breakdown(
            account_id
        )

        return ReferralStats(
            total_referrals=total_referrals,
            active_referrals=active_referrals,
            total_commissions=total_commissions,
            monthly_commissions=monthly_commissions,
            level_breakdown=level_breakdown,
        )
