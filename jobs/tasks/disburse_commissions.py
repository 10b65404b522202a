"""
Commission disbursement task.

Pays a batch of pending referral commissions. Runs hourly.
"""

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

import jobs.broker  # noqa: F401
from app.services.base_service import CycleResult
from app.services.referral import ReferralEarningsManager
from app.utils.distributed_lock import DistributedLock
from jobs.async_runner import create_local_session, run_async
from jobs.cycle_runner import SessionFactory, run_cycle

CYCLE_NAME = "disburse_commissions"


async def run_disburse_commissions(
    session_factory: SessionFactory | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """Disburse pending commissions under the cycle lock."""

    async def work(session: AsyncSession) -> CycleResult:
        return await ReferralEarningsManager(session).disburse_pending_commissions()

    return await run_cycle(CYCLE_NAME, work, session_factory, lock)


@dramatiq.actor(max_retries=3, time_limit=300_000)
def disburse_commissions() -> None:
    """Disburse commissions from a worker process."""
    result = run_async(run_disburse_commissions(create_local_session))
    if result is None:
        logger.info("Commission disbursement skipped, previous run in progress")
