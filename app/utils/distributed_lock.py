"""
Cycle locks.

Guards periodic cycles so two runs of the same cycle never overlap. Uses a
Redis lock when a client is supplied (several worker processes). Without one
it falls back to an in-process asyncio lock per key, which settings only
allow in the test environment.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import LockError

# In-process locks shared by every DistributedLock without Redis
_local_locks: dict[str, asyncio.Lock] = {}


class DistributedLock:
    """
    Non-blocking named lock.

    Usage:
        lock = DistributedLock(redis_client=client)
        async with lock.lock("reprice_positions", timeout=300) as acquired:
            if not acquired:
                return  # another run holds the lock
            ...
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        prefix: str = "cycle_lock:",
    ) -> None:
        """
        Initialize lock.

        Args:
            redis_client: Redis client, None for in-process locking
            prefix: Key prefix for Redis lock names
        """
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(self, key: str, timeout: int = 60) -> AsyncIterator[bool]:
        """
        Try to take the lock without waiting.

        Args:
            key: Lock name
            timeout: Redis lock expiry in seconds

        Yields:
            True if this caller holds the lock, False if it is taken
        """
        if self.redis_client is not None:
            async with self._redis_lock(key, timeout) as acquired:
                yield acquired
        else:
            async with self._local_lock(key) as acquired:
                yield acquired

    @asynccontextmanager
    async def _redis_lock(self, key: str, timeout: int) -> AsyncIterator[bool]:
        lock = self.redis_client.lock(f"{self.prefix}{key}", timeout=timeout)
        acquired = await lock.acquire(blocking=False)
        if not acquired:
            logger.info(f"Lock {key} is held elsewhere, skipping")
            yield False
            return

        try:
            yield True
        finally:
            try:
                await lock.release()
            except LockError:
                # Expired while the cycle was still running
                logger.warning(f"Lock {key} expired before release")

    @asynccontextmanager
    async def _local_lock(self, key: str) -> AsyncIterator[bool]:
        lock = _local_locks.setdefault(key, asyncio.Lock())
        if lock.locked():
            logger.info(f"Lock {key} is held by a running cycle, skipping")
            yield False
            return

        await lock.acquire()
        try:
            yield True
        finally:
            lock.release()
