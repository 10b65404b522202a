"""Integration tests for the referral program."""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.models import (
    AccountStatus,
    ActivityType,
    Commission,
    CommissionStatus,
    LedgerEntryKind,
)
from app.services.account_service import AccountService
from app.services.investment import InvestmentEngine
from app.services.ledger import LedgerService
from app.services.referral import (
    MonthlyBonusManager,
    ReferralChainManager,
    ReferralCommissionProcessor,
    ReferralEarningsManager,
    ReferralStatisticsManager,
)
from app.services.trading import PositionEngine
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import InvalidState, NotFound


@pytest.fixture
async def network(make_account):
    """
    Five-level chain: root <- l3 <- l2 <- l1 <- trader.

    From the trader's point of view l1 is level 1, l2 level 2, l3 level 3
    and root is beyond the program.
    """
    root = await make_account("root")
    l3 = await make_account("level3", referrer=root)
    l2 = await make_account("level2", referrer=l3)
    l1 = await make_account("level1", referrer=l2)
    trader = await make_account("trader", funds=Decimal("10000"), referrer=l1)
    return {
        "root": root.id,
        "l3": l3.id,
        "l2": l2.id,
        "l1": l1.id,
        "trader": trader.id,
    }


async def commissions_of(session, beneficiary_id) -> list[Commission]:
    result = await session.execute(
        select(Commission)
        .where(Commission.beneficiary_account_id == beneficiary_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class TestReferralChain:
    """Integration tests for ReferralChainManager."""

    @pytest.mark.asyncio
    async def test_chain_stops_at_three_levels(self, session, network):
        """Only three ancestors, direct referrer first."""
        chain = await ReferralChainManager(session).get_referral_chain(
            network["trader"]
        )

        assert [a.id for a in chain] == [network["l1"], network["l2"], network["l3"]]

    @pytest.mark.asyncio
    async def test_chain_survives_referral_loop(self, session, make_account):
        """A referrer link back into the chain ends the walk."""
        first = await make_account("first")
        second = await make_account("second", referrer=first)
        first.referrer_id = second.id
        await session.commit()

        chain = await ReferralChainManager(session).get_referral_chain(second.id)

        assert [a.id for a in chain] == [first.id]

    @pytest.mark.asyncio
    async def test_downline_levels(self, session, network):
        """Downline is grouped by level below the root."""
        levels = await ReferralChainManager(session).get_downline_ids(network["l3"])

        assert levels == [[network["l2"]], [network["l1"]], [network["trader"]]]


class TestCommissionQueue:
    """Integration tests for commission creation."""

    @pytest.mark.asyncio
    async def test_trading_commissions_queued_on_open(
        self, session, network, price_source, balance_of
    ):
        """Opening a position queues pending commissions on the notional."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )

        l1 = await commissions_of(session, network["l1"])
        l2 = await commissions_of(session, network["l2"])
        l3 = await commissions_of(session, network["l3"])
        assert [c.amount for c in l1] == [Decimal("150.00")]
        assert [c.amount for c in l2] == [Decimal("100.00")]
        assert [c.amount for c in l3] == [Decimal("50.00")]
        assert l1[0].level == 1 and l3[0].level == 3
        assert l1[0].status == CommissionStatus.PENDING.value
        assert await commissions_of(session, network["root"]) == []

        # Queued, not yet paid
        assert await balance_of(network["l1"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_deposit_commissions_queued_on_investment(self, session, network):
        """Investments queue deposit commissions at 1.5x the level rate."""
        await InvestmentEngine(session).create_investment(
            network["trader"], "3_days", Decimal("2000")
        )

        l1 = await commissions_of(session, network["l1"])
        assert l1[0].activity_type == ActivityType.DEPOSIT.value
        assert l1[0].amount == Decimal("450.00")

    @pytest.mark.asyncio
    async def test_inactive_ancestor_skipped_without_shifting(self, session, network):
        """An inactive level 2 earns nothing; level 3 keeps its rate."""
        await AccountService(session).set_status(
            network["l2"], AccountStatus.INACTIVE
        )

        result = await ReferralCommissionProcessor(
            session
        ).process_referral_commissions(
            network["trader"], Decimal("1000"), ActivityType.TRADING
        )
        await session.commit()

        assert result.commissions_count == 2
        assert result.total_amount == Decimal("200.00")
        assert [c.level for c in result.commissions] == [1, 3]


class TestDisbursement:
    """Integration tests for ReferralEarningsManager."""

    @pytest.mark.asyncio
    async def test_disbursement_pays_once(
        self, session, network, price_source, balance_of
    ):
        """Pending commissions are paid once; re-running pays nothing."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        manager = ReferralEarningsManager(session)

        first = await manager.disburse_pending_commissions()
        second = await manager.disburse_pending_commissions()

        assert first.processed == 3
        assert second.total == 0
        assert await balance_of(network["l1"]) == Decimal("150")
        assert await balance_of(network["l2"]) == Decimal("100")
        assert await balance_of(network["l3"]) == Decimal("50")

        paid = (await commissions_of(session, network["l1"]))[0]
        assert paid.status == CommissionStatus.PAID.value
        assert paid.paid_at is not None
        history = await LedgerService(session).get_history(network["l1"])
        assert history[0].kind == LedgerEntryKind.COMMISSION.value
        assert history[0].reference == f"commission:{paid.id}"

    @pytest.mark.asyncio
    async def test_suspended_beneficiary_stays_pending(
        self, session, network, price_source, balance_of
    ):
        """Suspended accounts keep their commissions pending."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        await AccountService(session).set_status(
            network["l1"], AccountStatus.SUSPENDED
        )

        result = await ReferralEarningsManager(
            session
        ).disburse_pending_commissions()

        assert result.processed == 2
        assert await balance_of(network["l1"]) == Decimal("0")
        pending = (await commissions_of(session, network["l1"]))[0]
        assert pending.status == CommissionStatus.PENDING.value

        # Reactivation releases the commission on the next cycle
        await AccountService(session).set_status(
            network["l1"], AccountStatus.ACTIVE
        )
        result = await ReferralEarningsManager(
            session
        ).disburse_pending_commissions()
        assert result.processed == 1
        assert await balance_of(network["l1"]) == Decimal("150")

    @pytest.mark.asyncio
    async def test_cancel_commission(self, session, network, price_source):
        """Pending commissions can be cancelled, paid ones cannot."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        manager = ReferralEarningsManager(session)
        l1_commission = (await commissions_of(session, network["l1"]))[0]
        l2_commission = (await commissions_of(session, network["l2"]))[0]
        l1_id, l2_id = l1_commission.id, l2_commission.id

        cancelled = await manager.cancel_commission(l1_id)
        assert cancelled.status == CommissionStatus.CANCELLED.value

        result = await manager.disburse_pending_commissions()
        assert result.processed == 2

        with pytest.raises(InvalidState):
            await manager.cancel_commission(l2_id)


class TestMonthlyBonusAndStats:
    """Integration tests for the monthly bonus and statistics."""

    @pytest.mark.asyncio
    async def test_monthly_bonus_is_idempotent(
        self, session, network, price_source, balance_of
    ):
        """The top earner gets 2% once per month."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        await ReferralEarningsManager(session).disburse_pending_commissions()
        now = utc_now()
        manager = MonthlyBonusManager(session)

        bonuses = await manager.calculate_monthly_bonuses(now.year, now.month)
        first = await manager.pay_monthly_bonuses(now.year, now.month)
        second = await manager.pay_monthly_bonuses(now.year, now.month)

        assert [(b.account_id, b.bonus_amount) for b in bonuses] == [
            (network["l1"], Decimal("3.00"))
        ]
        assert first.processed == 1
        assert second.processed == 0
        assert second.skipped == 1
        assert await balance_of(network["l1"]) == Decimal("153")

    @pytest.mark.asyncio
    async def test_suspended_earner_gives_up_the_top_slot(
        self, session, network, price_source, balance_of
    ):
        """The top slot goes to the best active earner."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        await ReferralEarningsManager(session).disburse_pending_commissions()
        await AccountService(session).set_status(
            network["l1"], AccountStatus.SUSPENDED
        )
        now = utc_now()
        manager = MonthlyBonusManager(session)

        bonuses = await manager.calculate_monthly_bonuses(now.year, now.month)
        result = await manager.pay_monthly_bonuses(now.year, now.month)

        # l1 earned 150, l2 100: l2 is now the only winner
        assert [(b.account_id, b.bonus_amount) for b in bonuses] == [
            (network["l2"], Decimal("2.00"))
        ]
        assert result.processed == 1
        assert await balance_of(network["l1"]) == Decimal("150")
        assert await balance_of(network["l2"]) == Decimal("102")

    @pytest.mark.asyncio
    async def test_referral_stats(self, session, network, price_source):
        """Stats count the downline and the paid commissions."""
        await PositionEngine(session, price_source=price_source).open_position(
            network["trader"], "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        await ReferralEarningsManager(session).disburse_pending_commissions()

        stats = await ReferralStatisticsManager(session).get_referral_stats(
            network["l3"]
        )

        assert stats.total_referrals == 3
        assert stats.active_referrals == 1
        assert stats.total_commissions == Decimal("50")
        assert stats.monthly_commissions == Decimal("50")
        assert stats.level_breakdown == {3: Decimal("50")}

    @pytest.mark.asyncio
    async def test_stats_unknown_account(self, session):
        """Stats for a missing account raise NotFound."""
        with pytest.raises(NotFound):
            await ReferralStatisticsManager(session).get_referral_stats(
                uuid.uuid4()
            )
