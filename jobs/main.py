"""
Scheduler process entry point.

Starts the periodic cycles and the health endpoint, and runs until
interrupted.
"""

import asyncio
import signal
import sys
from pathlib import Path

from loguru import logger


# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config.logging import setup_logging  # noqa: E402
from app.config.settings import settings  # noqa: E402
from jobs.health import set_lifecycle, start_health_server, stop_health_server  # noqa: E402
from jobs.scheduler import SchedulerLifecycle  # noqa: E402


async def main() -> None:
    """Run the scheduler until SIGINT/SIGTERM."""
    setup_logging()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    lifecycle = SchedulerLifecycle()
    lifecycle.start()
    set_lifecycle(lifecycle)

    runner = await start_health_server(port=settings.health_check_port)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down scheduler...")
        lifecycle.stop(wait=False)
        await stop_health_server(runner)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user (KeyboardInterrupt)")
