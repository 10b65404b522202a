"""
Database engine and session factory.

The engine is created from settings.database_url; sessions never expire
objects on commit so services can keep reading committed state.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config.settings import settings


def create_engine(
    database_url: str | None = None,
    echo: bool | None = None,
    **engine_kwargs: Any,
) -> AsyncEngine:
    """Create an async engine for the configured database."""
    engine_kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.database_echo if echo is None else echo,
        **engine_kwargs,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session maker bound to the engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
