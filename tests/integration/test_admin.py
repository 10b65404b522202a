"""Integration tests for the admin audit trail and dashboard."""

import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from app.models import AccountStatus, AdminAction
from app.services.account_service import AccountService
from app.services.admin_log_service import (
    ACCOUNT_STATUS_CHANGE,
    BALANCE_ADJUSTMENT,
    AdminLogService,
)
from app.services.admin_stats_service import AdminStatsService
from app.services.investment import InvestmentEngine
from app.services.ledger import LedgerService
from app.services.trading import PositionEngine
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import InsufficientFunds, NotFound


async def count_actions(session) -> int:
    result = await session.execute(select(func.count()).select_from(AdminAction))
    return result.scalar_one()


class TestAdminAuditTrail:
    """Admin operations leave an audit record."""

    @pytest.mark.asyncio
    async def test_adjust_balance_is_logged(self, session, make_account):
        """Balance corrections record operator, delta and resulting balance."""
        account = await make_account("audited", funds=Decimal("100"))
        account_id = account.id

        entry = await LedgerService(session).adjust_balance(
            account_id,
            Decimal("-30"),
            "chargeback",
            admin_id="admin-7",
            ip_address="10.0.0.7",
        )

        history = await AdminLogService(session).get_target_history(
            "account", account_id
        )
        assert len(history) == 1
        action = history[0]
        assert action.admin_id == "admin-7"
        assert action.action_type == BALANCE_ADJUSTMENT
        assert action.ip_address == "10.0.0.7"
        assert action.details["delta"] == str(Decimal("-30.00000000"))
        assert action.details["reason"] == "chargeback"
        assert action.details["ledger_entry_id"] == str(entry.id)
        assert Decimal(action.details["balance_after"]) == Decimal("70")

    @pytest.mark.asyncio
    async def test_set_status_is_logged(self, session, make_account):
        """Status changes record the previous and new status."""
        account = await make_account("flagged")
        account_id = account.id

        await AccountService(session).set_status(
            account_id, AccountStatus.SUSPENDED, admin_id="admin-1"
        )

        history = await AdminLogService(session).get_target_history(
            "account", account_id
        )
        assert [a.action_type for a in history] == [ACCOUNT_STATUS_CHANGE]
        assert history[0].details == {"from": "active", "to": "suspended"}

    @pytest.mark.asyncio
    async def test_failed_operations_leave_no_record(
        self, session, make_account, balance_of
    ):
        """The audit row rolls back with the change it describes."""
        account = await make_account("shorted", funds=Decimal("100"))
        account_id = account.id

        with pytest.raises(InsufficientFunds):
            await LedgerService(session).adjust_balance(
                account_id, Decimal("-500"), "too much"
            )
        with pytest.raises(NotFound):
            await AccountService(session).set_status(
                uuid.uuid4(), AccountStatus.SUSPENDED
            )

        # Fail after the audit row is flushed
        service = LedgerService(session)
        service.commit = AsyncMock(side_effect=RuntimeError("commit failed"))
        with pytest.raises(RuntimeError):
            await service.adjust_balance(account_id, Decimal("10"), "lost")

        assert await count_actions(session) == 0
        assert await balance_of(account_id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_operator_defaults_to_system(self, session, make_account):
        """Calls without an admin identity are attributed to the system."""
        account = await make_account("quiet", funds=Decimal("100"))

        await LedgerService(session).adjust_balance(
            account.id, Decimal("5"), "goodwill"
        )

        actions = await AdminLogService(session).get_recent_actions()
        assert [a.admin_id for a in actions] == ["system"]
        assert actions[0].ip_address is None


class TestAdminDashboard:
    """Dashboard aggregates over accounts, ledger, positions and investments."""

    @pytest.mark.asyncio
    async def test_empty_platform(self, session):
        """An empty database reports zeros."""
        stats = await AdminStatsService(session).get_dashboard_stats()

        assert stats.total_accounts == 0
        assert stats.total_deposits == Decimal("0")
        assert stats.total_profit == Decimal("0")
        assert stats.total_invested == Decimal("0")

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, session, make_account, price_source):
        """Totals count external money flows and realized trading results."""
        alice = await make_account("alice", funds=Decimal("5000"))
        bob = await make_account("bob", funds=Decimal("500"))
        alice_id, bob_id = alice.id, bob.id

        await LedgerService(session).withdraw(bob_id, Decimal("100"))
        # Principal is a negative deposit-kind entry, not external funding
        await InvestmentEngine(session).create_investment(
            alice_id, "3_days", Decimal("2000")
        )

        engine = PositionEngine(session, price_source=price_source)
        winner = await engine.open_position(
            alice_id, "XAUUSD", "long", Decimal("1000"), leverage=10
        )
        loser = await engine.open_position(
            bob_id, "XAUUSD", "short", Decimal("100"), leverage=10
        )
        price_source.set_mid("XAUUSD", Decimal("2409.355"))
        winner = await engine.close_position(alice_id, winner.id)
        loser = await engine.close_position(bob_id, loser.id)

        await AccountService(session).set_status(bob_id, AccountStatus.SUSPENDED)

        stats = await AdminStatsService(session).get_dashboard_stats()

        assert stats.total_accounts == 2
        assert stats.active_accounts == 1
        assert stats.new_accounts_today == 2
        assert stats.new_accounts_week == 2

        assert stats.total_deposits == Decimal("5500")
        assert stats.total_withdrawals == Decimal("100")
        assert stats.total_entries == stats.entries_today
        assert stats.total_entries > 0

        assert stats.total_positions == 2
        assert stats.open_positions == 0
        assert winner.profit > 0 > loser.profit
        assert stats.total_profit == winner.profit
        assert stats.total_loss == -loser.profit

        assert stats.total_investments == 1
        assert stats.active_investments == 1
        assert stats.total_invested == Decimal("2000")
        assert stats.total_returns == Decimal("0")

    @pytest.mark.asyncio
    async def test_time_windows(self, session, make_account):
        """New-account counters follow the reference time."""
        await make_account("early")
        service = AdminStatsService(session)

        later = await service.get_dashboard_stats(now=utc_now() + timedelta(days=8))

        assert later.total_accounts == 1
        assert later.new_accounts_today == 0
        assert later.new_accounts_week == 0

    @pytest.mark.asyncio
    async def test_dashboard_data_lists_recent_records(
        self, session, make_account
    ):
        """Recent lists are newest first and capped by the limit."""
        for name in ("one", "two", "three"):
            await make_account(name, funds=Decimal("100"))
        accounts = await AccountService(session).account_repo.find_all()
        await AccountService(session).set_status(
            accounts[0].id, AccountStatus.INACTIVE, admin_id="admin-2"
        )

        data = await AdminStatsService(session).get_dashboard_data(limit=2)

        assert data.stats.total_accounts == 3
        assert [a.username for a in data.recent_accounts] == ["three", "two"]
        assert len(data.recent_entries) == 2
        assert data.recent_positions == []
        assert data.recent_investments == []
        assert [a.admin_id for a in data.recent_actions] == ["admin-2"]
