"""
Health check server for scheduler monitoring.

Provides HTTP endpoint for health checks and monitoring.
"""

import asyncio

from aiohttp import web
from loguru import logger

from jobs.scheduler import SchedulerLifecycle

# Global lifecycle reference for health checks
_lifecycle: SchedulerLifecycle | None = None


def set_lifecycle(lifecycle: SchedulerLifecycle | None) -> None:
    """
    Set the scheduler lifecycle for health checks.

    Args:
        lifecycle: SchedulerLifecycle to monitor
    """
    global _lifecycle
    _lifecycle = lifecycle
    logger.info("Scheduler registered for health checks")


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler status
    """
    if _lifecycle is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    jobs = _lifecycle.get_jobs()
    return web.json_response(
        {
            "status": "healthy" if _lifecycle.running else "stopped",
            "scheduler_state": _lifecycle.state.value,
            "jobs_count": len(jobs),
            "jobs": jobs,
        },
        status=200 if _lifecycle.running else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """
    Liveness check endpoint.

    Returns:
        JSON response indicating if the process is alive
    """
    return web.json_response({"status": "alive", "alive": True})


def create_health_app() -> web.Application:
    """Build the health check application."""
    app = web.Application()
    app.router.add_get("/health", health_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    host: str = "0.0.0.0",
    port: int = 8080,
) -> web.AppRunner:
    """
    Start health check server.

    Args:
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app())
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner


async def stop_health_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop health check server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Health check server stopped successfully")
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
