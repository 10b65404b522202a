"""
Monthly bonus task.

Pays the top performer bonus for the previous calendar month. Runs on the
first day of each month.
"""

from datetime import datetime

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

import jobs.broker  # noqa: F401
from app.services.base_service import CycleResult
from app.services.referral import MonthlyBonusManager
from app.utils.datetime_utils import utc_now
from app.utils.distributed_lock import DistributedLock
from jobs.async_runner import create_local_session, run_async
from jobs.cycle_runner import SessionFactory, run_cycle

CYCLE_NAME = "monthly_bonus"


def previous_month(now: datetime) -> tuple[int, int]:
    """(year, month) of the month before `now`."""
    if now.month == 1:
        return now.year - 1, 12
    return now.year, now.month - 1


async def run_monthly_bonus(
    year: int | None = None,
    month: int | None = None,
    session_factory: SessionFactory | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """Pay the monthly bonus, for the previous month by default."""
    if year is None or month is None:
        year, month = previous_month(utc_now())

    async def work(session: AsyncSession) -> CycleResult:
        return await MonthlyBonusManager(session).pay_monthly_bonuses(year, month)

    return await run_cycle(CYCLE_NAME, work, session_factory, lock)


@dramatiq.actor(max_retries=3, time_limit=600_000)
def pay_monthly_bonus(year: int | None = None, month: int | None = None) -> None:
    """Pay the monthly bonus from a worker process."""
    result = run_async(
        run_monthly_bonus(year, month, session_factory=create_local_session)
    )
    if result is None:
        logger.info("Monthly bonus skipped, previous run in progress")
