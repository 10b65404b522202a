"""
Referral commission processor.

Queues pending commissions for the ancestors of an account when it trades
or invests. Balances are not touched here; the disbursement cycle pays.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.commission import Commission
from app.models.enums import ActivityType, CommissionStatus
from app.services.referral.calculator import (
    commission_rate,
    compute_commission,
)
from app.services.referral.chain_manager import ReferralChainManager
from app.services.referral.config import REFERRAL_DEPTH
from app.utils.money import ZERO


@dataclass
class ProcessResult:
    """Result of commission processing."""

    total_amount: Decimal = ZERO
    commissions: list[Commission] = field(default_factory=list)

    @property
    def commissions_count(self) -> int:
        """Number of commissions queued."""
        return len(self.commissions)


class ReferralCommissionProcessor:
    """Creates pending commissions along a referral chain."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize referral commission processor.

        Args:
            session: Async database session
        """
        self.session = session
        self.chain_manager = ReferralChainManager(session)

    async def process_referral_commissions(
        self,
        source_account_id: uuid.UUID,
        activity_amount: Decimal,
        activity_type: ActivityType,
        chain: list[Account] | None = None,
    ) -> ProcessResult:
        """
        Queue commissions for up to three ancestors.

        Level is the ancestor's position in the chain plus one. Inactive
        ancestors and zero amounts are skipped; the level of the next
        ancestor does not shift.

        Args:
            source_account_id: Account whose activity earns the commission
            activity_amount: Trade notional or deposit principal
            activity_type: trading, deposit or bonus
            chain: Pre-fetched ancestors, looked up when omitted

        Returns:
            ProcessResult with the created commissions
        """
        if chain is None:
            chain = await self.chain_manager.get_referral_chain(
                source_account_id
            )

        result = ProcessResult()
        activity = ActivityType(activity_type)

        for index, referrer in enumerate(chain[:REFERRAL_DEPTH]):
            level = index + 1
            amount = compute_commission(activity_amount, level, activity)

            if amount <= ZERO or not referrer.is_active:
                continue

            commission = Commission(
                source_account_id=source_account_id,
                beneficiary_account_id=referrer.id,
                amount=amount,
                percentage=commission_rate(level, activity),
                level=level,
                activity_type=activity.value,
                status=CommissionStatus.PENDING.value,
            )
            self.session.add(commission)
            result.commissions.append(commission)
            result.total_amount += amount

        if result.commissions:
            await self.session.flush()

        logger.info(
            "Referral commissions queued",
            extra={
                "source_account_id": str(source_account_id),
                "activity_type": activity.value,
                "total_amount": str(result.total_amount),
                "commissions_count": result.commissions_count,
            },
        )
        return result
