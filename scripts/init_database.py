#!/usr/bin/env python3
"""Create the ledger tables (accounts, ledger entries, positions,
investments, commissions, admin actions)."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine  # noqa: E402

from app.config.database import create_engine  # noqa: E402
from app.models import Base  # noqa: E402


async def init_database(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables.

    Args:
        engine: Engine to use, one built from settings.database_url if omitted
    """
    own_engine = engine is None
    engine = engine or create_engine()

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    if own_engine:
        await engine.dispose()
    logger.success(
        f"Database tables created: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    asyncio.run(init_database())
