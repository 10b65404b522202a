"""
Fixed-term investment engine.

Contract lifecycle: active -> completed -> renewed, or active -> cancelled
on early exit. Daily interest and maturation are driven by the scheduler.
"""

import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import get_plan
from app.models.enums import ActivityType, InvestmentStatus, LedgerEntryKind
from app.models.investment import Investment
from app.repositories.investment_repository import InvestmentRepository
from app.services.base_service import (
    BaseService,
    CycleResult,
    log_operation,
    transaction,
)
from app.services.investment.calculator import (
    calculate_daily_interest,
    calculate_early_exit_payout,
    calculate_total_return,
    days_elapsed,
)
from app.services.ledger.balance_manager import BalanceManager
from app.services.referral.commission_processor import (
    ReferralCommissionProcessor,
)
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    AmountOutOfRange,
    InsufficientFunds,
    InvalidState,
    NotFound,
)
from app.utils.money import parse_money, to_money


class InvestmentEngine(BaseService):
    """Creates, accrues, matures, exits and renews investments."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize investment engine."""
        super().__init__(session)
        self.investment_repo = InvestmentRepository(session)
        self.balance_manager = BalanceManager(session)
        self.commission_processor = ReferralCommissionProcessor(session)

    @transaction
    async def create_investment(
        self,
        account_id: uuid.UUID,
        plan_code: str,
        amount: Decimal,
        now: datetime | None = None,
    ) -> Investment:
        """
        Buy a fixed-term contract.

        Raises:
            NotFound: unknown plan or account
            AmountOutOfRange: amount outside the plan's range
            InsufficientFunds: balance below the amount
            InvalidState: account is not active
        """
        return await self._create(account_id, plan_code, amount, now or utc_now())

    async def _create(
        self,
        account_id: uuid.UUID,
        plan_code: str,
        amount: Decimal,
        now: datetime,
        renewed_from_id: uuid.UUID | None = None,
    ) -> Investment:
        plan = get_plan(plan_code)
        if not plan:
            raise NotFound(f"Investment plan {plan_code} not found")

        value = parse_money(amount)
        if value < plan.min_amount or value > plan.max_amount:
            raise AmountOutOfRange(
                f"Amount must be between {plan.min_amount} and {plan.max_amount}"
            )

        account = await self.balance_manager.lock_account(account_id)
        if not account.is_active:
            raise InvalidState(f"Account {account_id} is {account.status}")
        if account.balance < value:
            raise InsufficientFunds(
                f"Insufficient balance: {account.balance} < {value}"
            )

        await self.balance_manager.debit(
            account_id,
            value,
            LedgerEntryKind.DEPOSIT,
            f"Investment in {plan.name}",
        )

        investment = await self.investment_repo.create(
            account_id=account_id,
            plan_code=plan.code.value,
            amount=value,
            daily_rate=plan.daily_rate,
            duration_days=plan.duration_days,
            total_return=calculate_total_return(value, plan),
            status=InvestmentStatus.ACTIVE.value,
            start_date=now,
            end_date=now + timedelta(days=plan.duration_days),
            renewed_from_id=renewed_from_id,
        )

        await self.commission_processor.process_referral_commissions(
            account_id, value, ActivityType.DEPOSIT
        )

        self.logger.info(
            f"Investment {investment.id} created",
            extra={
                "account_id": str(account_id),
                "plan": plan.code.value,
                "amount": str(value),
                "end_date": investment.end_date.isoformat(),
            },
        )
        return investment

    @log_operation
    async def accrue_daily_interest(
        self, now: datetime | None = None
    ) -> CycleResult:
        """
        Credit one day of interest to every running contract.

        A contract already paid on the same UTC day is skipped.

        Returns:
            CycleResult for the batch
        """
        now = now or utc_now()
        investment_ids = await self.investment_repo.get_accruing_ids(now)

        async def accrue(investment_id: uuid.UUID) -> bool:
            investment = await self.investment_repo.get_for_update(investment_id)
            if not investment or not investment.is_active:
                return False
            if not investment.start_date <= now < investment.end_date:
                return False
            if (
                investment.last_payout_at is not None
                and investment.last_payout_at.date() == now.date()
            ):
                return False

            interest = calculate_daily_interest(
                investment.amount, investment.daily_rate
            )
            await self.balance_manager.credit(
                investment.account_id,
                interest,
                LedgerEntryKind.INTEREST,
                f"Daily interest from {investment.plan_code} plan",
            )
            investment.last_payout_at = now
            investment.interest_paid = to_money(
                investment.interest_paid + interest
            )
            await self.session.flush()
            return True

        result = await self.process_units(investment_ids, accrue, "investment")
        self.logger.info(
            "Daily interest accrual finished",
            extra={
                "processed": result.processed,
                "failed": result.failed,
                "skipped": result.skipped,
            },
        )
        return result

    @log_operation
    async def mature_investments(
        self, now: datetime | None = None
    ) -> CycleResult:
        """
        Complete every contract whose term has ended and pay its total return.

        Already completed contracts are left alone, so re-running is a no-op.

        Returns:
            CycleResult for the batch
        """
        now = now or utc_now()
        investment_ids = await self.investment_repo.get_matured_ids(now)

        async def mature(investment_id: uuid.UUID) -> bool:
            investment = await self.investment_repo.get_for_update(investment_id)
            if not investment or not investment.is_active:
                return False
            if investment.end_date > now:
                return False

            await self.balance_manager.credit(
                investment.account_id,
                investment.total_return,
                LedgerEntryKind.BONUS,
                f"Investment matured: {investment.plan_code} plan",
            )
            investment.status = InvestmentStatus.COMPLETED.value
            investment.closed_at = now
            await self.session.flush()

            # Total return is paid in full on top of the daily interest
            self.logger.info(
                f"Investment {investment.id} matured",
                extra={
                    "account_id": str(investment.account_id),
                    "total_return": str(investment.total_return),
                    "interest_already_paid": str(investment.interest_paid),
                },
            )
            return True

        result = await self.process_units(investment_ids, mature, "investment")
        self.logger.info(
            "Investment maturation finished",
            extra={
                "processed": result.processed,
                "failed": result.failed,
                "skipped": result.skipped,
            },
        )
        return result

    @transaction
    async def early_exit(
        self,
        account_id: uuid.UUID,
        investment_id: uuid.UUID,
        now: datetime | None = None,
    ) -> Decimal:
        """
        Sell a running contract before maturity.

        Returns:
            Amount credited: principal plus 80% of the interest earned

        Raises:
            NotFound: contract unknown or owned by another account
            InvalidState: contract is not active
        """
        now = now or utc_now()
        investment = await self._get_owned(account_id, investment_id)
        if not investment.is_active:
            raise InvalidState(
                f"Investment {investment_id} is {investment.status}"
            )

        elapsed = days_elapsed(
            investment.start_date, now, max_days=investment.duration_days
        )
        payout = calculate_early_exit_payout(
            investment.amount, investment.daily_rate, elapsed
        )

        await self.balance_manager.credit(
            account_id,
            payout,
            LedgerEntryKind.WITHDRAWAL,
            f"Early withdrawal from {investment.plan_code} plan",
        )
        investment.status = InvestmentStatus.CANCELLED.value
        investment.closed_at = now
        await self.session.flush()

        self.logger.info(
            f"Investment {investment_id} exited early",
            extra={"days_elapsed": elapsed, "payout": str(payout)},
        )
        return payout

    @transaction
    async def renew_investment(
        self,
        account_id: uuid.UUID,
        investment_id: uuid.UUID,
        now: datetime | None = None,
    ) -> Investment:
        """
        Reinvest a completed contract's total return in the same plan.

        The new contract and the renewed status of the old one are written
        in one transaction.

        Raises:
            NotFound: contract unknown or owned by another account
            InvalidState: contract is not completed
            AmountOutOfRange / InsufficientFunds: from contract creation
        """
        old = await self._get_owned(account_id, investment_id)
        if not old.can_renew:
            raise InvalidState(f"Investment {investment_id} is {old.status}")

        new = await self._create(
            account_id,
            old.plan_code,
            old.total_return,
            now or utc_now(),
            renewed_from_id=old.id,
        )
        old.status = InvestmentStatus.RENEWED.value
        await self.session.flush()
        return new

    async def get_investments(self, account_id: uuid.UUID) -> list[Investment]:
        """Investments of an account, newest first."""
        return await self.investment_repo.get_by_account(account_id)

    async def _get_owned(
        self, account_id: uuid.UUID, investment_id: uuid.UUID
    ) -> Investment:
        investment = await self.investment_repo.get_for_update(investment_id)
        if not investment or investment.account_id != account_id:
            raise NotFound(f"Investment {investment_id} not found")
        return investment
