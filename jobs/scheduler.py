"""
Scheduler lifecycle.

Owns the APScheduler instance that drives the periodic cycles. State is
explicit (stopped -> running -> stopped) and guarded by a lock, so the
scheduler cannot be started twice.
"""

import threading
from datetime import UTC
from enum import Enum
from typing import Any

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from app.config.settings import settings
from app.services.pricing import PriceSource
from app.utils.distributed_lock import DistributedLock
from jobs.cycle_runner import SessionFactory
from jobs.tasks.daily_interest import run_daily_interest
from jobs.tasks.disburse_commissions import run_disburse_commissions
from jobs.tasks.mature_investments import run_mature_investments
from jobs.tasks.monthly_bonus import run_monthly_bonus
from jobs.tasks.reprice_positions import run_reprice_positions


class SchedulerState(str, Enum):
    """Scheduler lifecycle state."""

    STOPPED = "stopped"
    RUNNING = "running"


class SchedulerAlreadyRunning(RuntimeError):
    """Raised when start() is called on a running scheduler."""


class SchedulerLifecycle:
    """
    Explicit owner of the periodic cycles.

    Usage:
        lifecycle = SchedulerLifecycle()
        lifecycle.start()   # inside a running event loop
        ...
        lifecycle.stop()
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        price_source: PriceSource | None = None,
        lock: DistributedLock | None = None,
    ) -> None:
        """
        Initialize lifecycle.

        Args:
            session_factory: Session context factory for every cycle
            price_source: Quote provider for re-pricing
            lock: Cycle lock shared by all jobs, built from settings if omitted
        """
        self.session_factory = session_factory
        self.price_source = price_source
        self.lock = lock
        self._state = SchedulerState.STOPPED
        self._state_lock = threading.Lock()
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def state(self) -> SchedulerState:
        """Current lifecycle state."""
        return self._state

    @property
    def running(self) -> bool:
        """True while the scheduler is running."""
        return self._state == SchedulerState.RUNNING

    def start(self) -> None:
        """
        Create the scheduler, register the cycles and start it.

        Raises:
            SchedulerAlreadyRunning: If already started
        """
        with self._state_lock:
            if self._state == SchedulerState.RUNNING:
                raise SchedulerAlreadyRunning("Scheduler is already running")

            scheduler = AsyncIOScheduler(
                jobstores={"default": MemoryJobStore()},
                executors={"default": AsyncIOExecutor()},
                job_defaults={
                    "coalesce": True,  # Merge missed runs
                    "max_instances": 1,  # Never overlap a cycle with itself
                    "misfire_grace_time": 300,
                },
                timezone=UTC,
            )
            self._register_jobs(scheduler)
            scheduler.start()

            self._scheduler = scheduler
            self._state = SchedulerState.RUNNING

        logger.info(
            f"Scheduler started with {len(scheduler.get_jobs())} jobs"
        )

    def stop(self, wait: bool = False) -> None:
        """
        Stop the scheduler. Calling stop on a stopped scheduler is a no-op.

        Args:
            wait: Wait for running jobs to finish
        """
        with self._state_lock:
            if self._state == SchedulerState.STOPPED:
                return

            if self._scheduler is not None:
                self._scheduler.shutdown(wait=wait)
            self._scheduler = None
            self._state = SchedulerState.STOPPED

        logger.info("Scheduler stopped")

    def get_jobs(self) -> list[dict[str, Any]]:
        """Registered jobs with their next run time."""
        if self._scheduler is None:
            return []
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
            for job in self._scheduler.get_jobs()
        ]

    def _register_jobs(self, scheduler: AsyncIOScheduler) -> None:
        common = {
            "session_factory": self.session_factory,
            "lock": self.lock,
        }

        scheduler.add_job(
            run_reprice_positions,
            trigger=IntervalTrigger(seconds=settings.reprice_interval_seconds),
            id="reprice_positions",
            name="Re-price open positions",
            kwargs={**common, "price_source": self.price_source},
            replace_existing=True,
        )
        scheduler.add_job(
            run_daily_interest,
            trigger=CronTrigger.from_crontab(
                settings.daily_interest_cron, timezone=UTC
            ),
            id="daily_interest",
            name="Accrue daily interest",
            kwargs=common,
            replace_existing=True,
        )
        scheduler.add_job(
            run_mature_investments,
            trigger=CronTrigger.from_crontab(
                settings.maturation_cron, timezone=UTC
            ),
            id="mature_investments",
            name="Mature investments",
            kwargs=common,
            replace_existing=True,
        )
        scheduler.add_job(
            run_disburse_commissions,
            trigger=CronTrigger.from_crontab(
                settings.disbursement_cron, timezone=UTC
            ),
            id="disburse_commissions",
            name="Disburse referral commissions",
            kwargs=common,
            replace_existing=True,
        )
        scheduler.add_job(
            run_monthly_bonus,
            trigger=CronTrigger.from_crontab(
                settings.monthly_bonus_cron, timezone=UTC
            ),
            id="monthly_bonus",
            name="Pay monthly referral bonus",
            kwargs=common,
            replace_existing=True,
        )
