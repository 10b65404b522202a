"""
Base service class.

Provides common functionality for all service classes including session
management, logging, batch results and helper decorators.
"""

import functools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.exceptions import is_unit_failure


# Type variable for generic decorator return types
T = TypeVar("T")


@dataclass
class CycleResult:
    """
    Outcome of a periodic batch cycle.

    processed: units that changed state
    failed: units rolled back after an error
    skipped: units that needed no work (already handled, not due)
    """
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of units visited."""
        return self.processed + self.failed + self.skipped


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Transaction helpers
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    async def refresh(self, obj: Any) -> None:
        """
        Refresh object from database.

        Args:
            obj: SQLAlchemy model instance to refresh
        """
        await self.session.refresh(obj)

    async def process_units(
        self,
        unit_ids: list[Any],
        handler: Callable[[Any], Awaitable[bool]],
        unit_name: str,
    ) -> CycleResult:
        """
        Run a batch one unit at a time, each in its own transaction.

        The handler returns True when it changed state and False when the
        unit needed no work. A failing unit is rolled back and counted,
        then the batch moves on to the next unit.

        Args:
            unit_ids: IDs selected for this cycle
            handler: Async callable processing one ID
            unit_name: Label used in logs

        Returns:
            CycleResult with processed/failed/skipped counts
        """
        result = CycleResult()

        for unit_id in unit_ids:
            try:
                changed = await handler(unit_id)
                await self.commit()
            except Exception as e:
                await self.rollback()
                result.failed += 1
                result.errors.append(f"{unit_id}: {e}")
                if is_unit_failure(e):
                    self.logger.warning(
                        f"Skipping {unit_name} {unit_id} after error",
                        extra={"error": str(e), "error_type": type(e).__name__},
                    )
                else:
                    self.logger.exception(
                        f"Unexpected error processing {unit_name} {unit_id}"
                    )
                continue

            if changed:
                result.processed += 1
            else:
                result.skipped += 1

        return result


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in a unit of work.

    Commits on success, rolls back on exception and re-raises, so balance
    mutations and the ledger entries that record them land together or
    not at all.

    Usage:
        @transaction
        async def open_position(self, ...):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            self.logger.warning(
                f"Transaction rolled back in {func.__name__}",
                extra={
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "function": func.__name__,
                },
            )
            raise

    return wrapper


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to log method entry/exit with timing.

    Usage:
        @log_operation
        async def run_cycle(self):
            ...

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        start_time = time.time()

        self.logger.info(
            f"Starting {func.__name__}",
            extra={
                "function": func.__name__,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )

        try:
            result = await func(self, *args, **kwargs)
            duration = time.time() - start_time

            self.logger.info(
                f"Completed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "success": True,
                },
            )

            return result

        except Exception as e:
            duration = time.time() - start_time

            self.logger.error(
                f"Failed {func.__name__}",
                extra={
                    "function": func.__name__,
                    "duration_seconds": round(duration, 3),
                    "error": str(e),
                    "success": False,
                },
            )

            raise

    return wrapper
