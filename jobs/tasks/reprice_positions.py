"""
Position re-pricing task.

Marks every open position to the simulated market and closes the ones
whose stop-loss or take-profit is crossed. Runs every 30 seconds.
"""

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

import jobs.broker  # noqa: F401
from app.services.base_service import CycleResult
from app.services.pricing import PriceSource
from app.services.trading import PositionEngine
from app.utils.distributed_lock import DistributedLock
from jobs.async_runner import create_local_session, run_async
from jobs.cycle_runner import SessionFactory, run_cycle

CYCLE_NAME = "reprice_positions"


async def run_reprice_positions(
    session_factory: SessionFactory | None = None,
    price_source: PriceSource | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """Re-price all open positions under the cycle lock."""

    async def work(session: AsyncSession) -> CycleResult:
        engine = PositionEngine(session, price_source=price_source)
        return await engine.reprice_open_positions()

    return await run_cycle(CYCLE_NAME, work, session_factory, lock)


@dramatiq.actor(max_retries=0, time_limit=60_000)
def reprice_positions() -> None:
    """Re-price open positions from a worker process."""
    result = run_async(run_reprice_positions(create_local_session))
    if result is None:
        logger.info("Position re-pricing skipped, previous run in progress")
