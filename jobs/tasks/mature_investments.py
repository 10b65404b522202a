"""
Investment maturation task.

Completes investments whose term has ended and pays their total return.
Runs hourly.
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

CYCLE_NAME = "mature_investments"


async def run_mature_investments(
    session_factory: SessionFactory | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """Mature due investments under the cycle lock."""

    async def work(session: AsyncSession) -> CycleResult:
        return await InvestmentEngine(session).mature_investments()

    return await run_cycle(CYCLE_NAME, work, session_factory, lock)


@dramatiq.actor(max_retries=3, time_limit=600_000)
def mature_investments() -> None:
    """Mature investments from a worker process."""
    result = run_async(run_mature_investments(create_local_session))
    if result is None:
        logger.info("Investment maturation skipped, previous run in progress")
