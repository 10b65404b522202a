"""
Monthly top performer bonus.

Ranks beneficiaries by the paid commissions created in a calendar month
and pays the top share a percentage of their total.
"""

import math
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import LedgerEntryKind
from app.repositories.commission_repository import CommissionRepository
from app.repositories.ledger_repository import LedgerRepository
from app.services.base_service import BaseService, CycleResult, log_operation
from app.services.ledger.balance_manager import BalanceManager
from app.services.referral.config import (
    MONTHLY_BONUS_RATE,
    MONTHLY_BONUS_TOP_SHARE,
)
from app.utils.datetime_utils import month_bounds
from app.utils.money import ZERO, to_money


@dataclass
class MonthlyBonus:
    """Bonus owed to one top performer."""

    account_id: uuid.UUID
    monthly_commissions: Decimal
    bonus_amount: Decimal


def bonus_reference(year: int, month: int) -> str:
    """Ledger reference marking a month's bonus as paid."""
    return f"monthly_bonus:{year:04d}-{month:02d}"


def select_top_performers(
    totals: list[tuple[uuid.UUID, Decimal]],
) -> list[MonthlyBonus]:
    """
    Pick the top share of earners and compute their bonuses.

    Args:
        totals: (account_id, monthly total) pairs

    Returns:
        Bonuses for the top 10% (at least one when anyone earned)
    """
    if not totals:
        return []

    ranked = sorted(totals, key=lambda item: item[1], reverse=True)
    top_count = max(1, math.floor(len(ranked) * MONTHLY_BONUS_TOP_SHARE))

    return [
        MonthlyBonus(
            account_id=account_id,
            monthly_commissions=total,
            bonus_amount=to_money(total * MONTHLY_BONUS_RATE),
        )
        for account_id, total in ranked[:top_count]
    ]


class MonthlyBonusManager(BaseService):
    """Computes and pays the monthly referral bonus."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize monthly bonus manager."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)
        self.ledger_repo = LedgerRepository(session)
        self.balance_manager = BalanceManager(session)

    async def calculate_monthly_bonuses(
        self, year: int, month: int
    ) -> list[MonthlyBonus]:
        """
        Bonuses for a month, without paying them.

        Only active accounts are ranked, so a suspended earner does not
        take a top slot.
        """
        start, end = month_bounds(year, month)
        totals = await self.commission_repo.get_paid_totals_by_beneficiary(
            start, end, active_only=True
        )
        return select_top_performers(totals)

    @log_operation
    async def pay_monthly_bonuses(self, year: int, month: int) -> CycleResult:
        """
        Pay a month's bonuses.

        Each account can receive a month's bonus once; the ledger reference
        makes a repeated run a no-op.

        Returns:
            CycleResult for the batch
        """
        bonuses = {
            bonus.account_id: bonus
            for bonus in await self.calculate_monthly_bonuses(year, month)
        }
        reference = bonus_reference(year, month)

        async def pay(account_id: uuid.UUID) -> bool:
            bonus = bonuses[account_id]
            if bonus.bonus_amount <= ZERO:
                return False

            account = await self.balance_manager.lock_account(account_id)
            if not account.is_active:
                return False
            if await self.ledger_repo.get_by_reference(account_id, reference):
                return False

            await self.balance_manager.credit(
                account_id,
                bonus.bonus_amount,
                LedgerEntryKind.BONUS,
                f"Monthly top performer bonus {year:04d}-{month:02d}",
                reference=reference,
            )
            return True

        result = await self.process_units(list(bonuses), pay, "monthly bonus")

        self.logger.info(
            f"Monthly bonus {year:04d}-{month:02d} finished",
            extra={
                "winners": len(bonuses),
                "processed": result.processed,
                "skipped": result.skipped,
                "failed": result.failed,
            },
        )
        return result
