"""Integration tests for the periodic cycles, scheduler and health check."""

import json
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from aiohttp.test_utils import make_mocked_request
from redis.exceptions import LockError

from app.services.investment import InvestmentEngine
from app.services.trading import PositionEngine
from app.utils.datetime_utils import utc_now
from app.utils.distributed_lock import DistributedLock
from jobs import health
from jobs.broker import broker
from jobs.scheduler import (
    SchedulerAlreadyRunning,
    SchedulerLifecycle,
    SchedulerState,
)
from jobs.tasks.daily_interest import run_daily_interest
from jobs.tasks.disburse_commissions import run_disburse_commissions
from jobs.tasks.mature_investments import run_mature_investments
from jobs.tasks.monthly_bonus import run_monthly_bonus
from jobs.tasks.reprice_positions import run_reprice_positions


class TestDistributedLock:
    """Tests for the non-blocking cycle lock."""

    @pytest.mark.asyncio
    async def test_local_lock_is_exclusive(self):
        """A second holder of the same key is turned away."""
        lock = DistributedLock()

        async with lock.lock("exclusive") as first:
            async with lock.lock("exclusive") as second:
                assert first is True
                assert second is False
            async with lock.lock("other") as unrelated:
                assert unrelated is True

        async with lock.lock("exclusive") as again:
            assert again is True

    @pytest.mark.asyncio
    async def test_redis_lock_acquire_and_release(self, mock_redis_client):
        """Redis lock is taken without blocking and released after use."""
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("reprice_positions", timeout=30) as acquired:
            assert acquired is True

        mock_redis_client.lock.assert_called_once_with(
            "cycle_lock:reprice_positions", timeout=30
        )
        redis_lock = mock_redis_client.lock.return_value
        redis_lock.acquire.assert_awaited_once_with(blocking=False)
        redis_lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_lock_held_elsewhere(self, mock_redis_client):
        """A lock held by another process yields False and is not released."""
        redis_lock = mock_redis_client.lock.return_value
        redis_lock.acquire = AsyncMock(return_value=False)
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("daily_interest") as acquired:
            assert acquired is False

        redis_lock.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_lock_expired_before_release(self, mock_redis_client):
        """An expired lock does not fail the cycle."""
        redis_lock = mock_redis_client.lock.return_value
        redis_lock.release = AsyncMock(side_effect=LockError("expired"))
        lock = DistributedLock(redis_client=mock_redis_client)

        async with lock.lock("mature_investments") as acquired:
            assert acquired is True


class TestCycleRunner:
    """Tests for the cycle entry points used by the scheduler."""

    @pytest.mark.asyncio
    async def test_daily_interest_cycle(
        self, session, session_maker, make_account, balance_of
    ):
        """Cycle runs with its own session and pays running contracts."""
        account = await make_account("cycler", funds=Decimal("10000"))
        await InvestmentEngine(session).create_investment(
            account.id, "3_days", Decimal("2000"), now=utc_now() - timedelta(hours=1)
        )

        result = await run_daily_interest(
            session_factory=session_maker, lock=DistributedLock()
        )

        assert result.processed == 1
        assert await balance_of(account.id) == Decimal("8110")

    @pytest.mark.asyncio
    async def test_cycle_skipped_while_running(self, session_maker):
        """A cycle whose lock is held returns None."""
        lock = DistributedLock()

        async with lock.lock("daily_interest"):
            result = await run_daily_interest(session_factory=session_maker, lock=lock)

        assert result is None

    @pytest.mark.asyncio
    async def test_reprice_cycle(
        self, session, session_maker, make_account, price_source
    ):
        """Re-pricing cycle uses the supplied price source."""
        account = await make_account("repricer", funds=Decimal("1000"))
        await PositionEngine(session, price_source=price_source).open_position(
            account.id, "XAUUSD", "long", Decimal("1000")
        )

        result = await run_reprice_positions(
            session_factory=session_maker,
            price_source=price_source,
            lock=DistributedLock(),
        )

        assert result.processed == 1

    @pytest.mark.asyncio
    async def test_empty_cycles(self, session_maker):
        """Cycles with nothing to do report zero units."""
        lock = DistributedLock()
        now = utc_now()

        matured = await run_mature_investments(session_factory=session_maker, lock=lock)
        disbursed = await run_disburse_commissions(
            session_factory=session_maker, lock=lock
        )
        bonus = await run_monthly_bonus(
            now.year, now.month, session_factory=session_maker, lock=lock
        )

        assert matured.total == 0
        assert disbursed.total == 0
        assert bonus.total == 0

    def test_actors_declared(self):
        """Every cycle is also available as a worker actor."""
        declared = set(broker.get_declared_actors())
        assert {
            "reprice_positions",
            "accrue_daily_interest",
            "mature_investments",
            "disburse_commissions",
            "pay_monthly_bonus",
        } <= declared


class TestSchedulerLifecycle:
    """Tests for SchedulerLifecycle."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, session_maker):
        """Scheduler registers every cycle and stops cleanly."""
        lifecycle = SchedulerLifecycle(session_factory=session_maker)
        assert lifecycle.state == SchedulerState.STOPPED

        lifecycle.start()
        try:
            assert lifecycle.running is True
            job_ids = {job["id"] for job in lifecycle.get_jobs()}
            assert job_ids == {
                "reprice_positions",
                "daily_interest",
                "mature_investments",
                "disburse_commissions",
                "monthly_bonus",
            }

            with pytest.raises(SchedulerAlreadyRunning):
                lifecycle.start()
        finally:
            lifecycle.stop()

        assert lifecycle.state == SchedulerState.STOPPED
        assert lifecycle.get_jobs() == []

        # Stopping twice is a no-op
        lifecycle.stop()
        assert lifecycle.running is False

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, session_maker):
        """A stopped scheduler can be started again."""
        lifecycle = SchedulerLifecycle(session_factory=session_maker)

        lifecycle.start()
        lifecycle.stop()
        lifecycle.start()
        try:
            assert lifecycle.running is True
        finally:
            lifecycle.stop()


class TestHealthCheck:
    """Tests for the health endpoints."""

    @pytest.mark.asyncio
    async def test_health_without_scheduler(self):
        """No registered scheduler reports unhealthy."""
        health.set_lifecycle(None)

        response = await health.health_handler(
            make_mocked_request("GET", "/health")
        )

        assert response.status == 503
        assert json.loads(response.body)["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_health_with_running_scheduler(self, session_maker):
        """A running scheduler reports healthy with its jobs."""
        lifecycle = SchedulerLifecycle(session_factory=session_maker)
        lifecycle.start()
        health.set_lifecycle(lifecycle)
        try:
            response = await health.health_handler(
                make_mocked_request("GET", "/health")
            )
            body = json.loads(response.body)

            assert response.status == 200
            assert body["status"] == "healthy"
            assert body["scheduler_state"] == "running"
            assert body["jobs_count"] == 5
        finally:
            lifecycle.stop()
            health.set_lifecycle(None)

    @pytest.mark.asyncio
    async def test_liveness(self):
        """Liveness only needs the process."""
        response = await health.liveness_handler(
            make_mocked_request("GET", "/liveness")
        )

        assert response.status == 200
        assert json.loads(response.body)["alive"] is True
