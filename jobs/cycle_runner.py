"""
Cycle runner.

Runs one periodic cycle under its named lock with a fresh session. Shared
by the APScheduler jobs and the dramatiq actors.
"""

from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.database import async_session_maker
from app.config.settings import settings
from app.services.base_service import CycleResult
from app.utils.distributed_lock import DistributedLock
from app.utils.redis_utils import get_redis_client

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]
CycleWork = Callable[[AsyncSession], Awaitable[CycleResult]]


async def run_cycle(
    name: str,
    work: CycleWork,
    session_factory: SessionFactory | None = None,
    lock: DistributedLock | None = None,
) -> CycleResult | None:
    """
    Run a cycle unless another run of it is in progress.

    Args:
        name: Cycle name, also the lock key
        work: Async callable doing the cycle with a session
        session_factory: Session context factory, async_session_maker by default
        lock: Cycle lock, built from settings when omitted

    Returns:
        CycleResult, or None when the run was skipped
    """
    redis_client = None
    if lock is None:
        if settings.use_redis_locks:
            redis_client = get_redis_client()
        lock = DistributedLock(redis_client=redis_client)

    factory = session_factory or async_session_maker

    try:
        async with lock.lock(
            name, timeout=settings.cycle_lock_timeout_seconds
        ) as acquired:
            if not acquired:
                logger.info(f"Cycle {name} already running, skipped")
                return None

            async with factory() as session:
                result = await work(session)

            logger.info(
                f"Cycle {name} complete: {result.processed} processed, "
                f"{result.failed} failed, {result.skipped} skipped"
            )
            return result
    finally:
        if redis_client:
            await redis_client.aclose()
