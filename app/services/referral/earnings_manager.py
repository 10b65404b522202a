"""
Referral earnings management module.

Pays queued commissions into beneficiary balances and cancels the ones
that should never be paid.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.commission import Commission
from app.models.enums import CommissionStatus, LedgerEntryKind
from app.repositories.commission_repository import CommissionRepository
from app.services.base_service import (
    BaseService,
    CycleResult,
    log_operation,
    transaction,
)
from app.services.ledger.balance_manager import BalanceManager
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import InvalidState, NotFound


class ReferralEarningsManager(BaseService):
    """Disburses and cancels referral commissions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize earnings manager."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)
        self.balance_manager = BalanceManager(session)

    @log_operation
    async def disburse_pending_commissions(
        self, limit: int | None = None
    ) -> CycleResult:
        """
        Pay pending commissions in creation order.

        Each commission is paid in its own transaction. A commission moves
        from pending to paid at most once, so re-running the cycle never
        pays twice.

        Args:
            limit: Batch size, defaults to settings.commission_batch_size

        Returns:
            CycleResult for the batch
        """
        batch_size = limit or settings.commission_batch_size
        commission_ids = await self.commission_repo.get_payable_ids(batch_size)

        result = await self.process_units(
            commission_ids, self._disburse_one, "commission"
        )

        self.logger.info(
            "Commission disbursement finished",
            extra={
                "processed": result.processed,
                "failed": result.failed,
                "skipped": result.skipped,
            },
        )
        return result

    async def _disburse_one(self, commission_id: uuid.UUID) -> bool:
        commission = await self.commission_repo.get_for_update(commission_id)
        if not commission or commission.status != CommissionStatus.PENDING.value:
            return False

        beneficiary = await self.balance_manager.lock_account(
            commission.beneficiary_account_id
        )
        if not beneficiary.is_active:
            # Stays pending until the account is reactivated
            return False

        await self.balance_manager.credit(
            beneficiary.id,
            commission.amount,
            LedgerEntryKind.COMMISSION,
            f"Level {commission.level} {commission.activity_type} commission",
            reference=f"commission:{commission.id}",
        )

        commission.status = CommissionStatus.PAID.value
        commission.paid_at = utc_now()
        await self.session.flush()
        return True

    @transaction
    async def cancel_commission(self, commission_id: uuid.UUID) -> Commission:
        """
        Cancel a pending commission.

        Raises:
            NotFound: If the commission does not exist
            InvalidState: If the commission is not pending
        """
        commission = await self.commission_repo.get_for_update(commission_id)
        if not commission:
            raise NotFound(f"Commission {commission_id} not found")
        if commission.status != CommissionStatus.PENDING.value:
            raise InvalidState(
                f"Commission {commission_id} is {commission.status}"
            )

        commission.status = CommissionStatus.CANCELLED.value
        await self.session.flush()

        self.logger.info(
            f"Commission {commission_id} cancelled",
            extra={"amount": str(commission.amount)},
        )
        return commission
