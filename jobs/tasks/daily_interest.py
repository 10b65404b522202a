"""
Daily interest task.

Credits one day of interest to every running fixed-term investment.
Runs once per day at midnight UTC.
"""

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

import jobs.broker  # noqa: F401
from app.services.base_service import CycleResult
from app.services.investment import InvestmentEngine
from app.utils.distributed_lock import DistributedLock
from jobs.async_runner import create_local_session, run_async
from jobs.cycle_runner import SessionFactory, run_cycle

CYCLE_NAME = "daily_interest"


async def run_daily_interest(
    session_factory: SessionFactory | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """Accrue daily interest under the cycle lock."""

    async def work(session: AsyncSession) -> CycleResult:
        return await InvestmentEngine(session).accrue_daily_interest()

    return await run_cycle(CYCLE_NAME, work, session_factory, lock)


@dramatiq.actor(max_retries=3, time_limit=600_000)
def accrue_daily_interest() -> None:
    """Accrue daily interest from a worker process."""
    result = run_async(run_daily_interest(create_local_session))
    if result is None:
        logger.info("Daily interest skipped, previous run in progress")
