"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Test environment: in-memory SQLite, stub broker, console-only logging
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_FILE", "")
os.environ["USE_REDIS_LOCKS"] = "false"

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uuid  # noqa: E402
from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config.database import create_engine, create_session_maker  # noqa: E402
from app.models import Account  # noqa: E402
from app.services.account_service import AccountService  # noqa: E402
from app.services.ledger import LedgerService  # noqa: E402
from app.services.pricing import StaticPriceSource  # noqa: E402
from scripts.init_database import init_database  # noqa: E402


@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_database(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session maker bound to the test engine."""
    return create_session_maker(db_engine)


@pytest.fixture
async def session(session_maker):
    """Database session for one test."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def price_source():
    """Static feed: XAUUSD mid 2385.00, XAGUSD mid 31.00, half-spread 0.5."""
    return StaticPriceSource(
        {"XAUUSD": Decimal("2385.00"), "XAGUSD": Decimal("31.00")},
        half_spread=Decimal("0.5"),
    )


@pytest.fixture
def make_account(session):
    """Factory registering an account and optionally funding it."""

    async def _make(
        username: str,
        funds: Decimal | None = None,
        referrer: Account | None = None,
    ) -> Account:
        account = await AccountService(session).register_account(
            username,
            email=f"{username}@example.com",
            referral_code=referrer.referral_code if referrer else None,
        )
        if funds:
            await LedgerService(session).deposit(account.id, funds)
        return account

    return _make


@pytest.fixture
def balance_of(session):
    """Read an account balance straight from the database."""

    async def _balance(account_id: uuid.UUID) -> Decimal:
        result = await session.execute(
            select(Account.balance).where(Account.id == account_id)
        )
        return result.scalar_one()

    return _balance


@pytest.fixture
def mock_redis_client():
    """Mock Redis client whose locks are always free."""
    client = MagicMock()
    redis_lock = MagicMock()
    redis_lock.acquire = AsyncMock(return_value=True)
    redis_lock.release = AsyncMock()
    client.lock = MagicMock(return_value=redis_lock)
    client.aclose = AsyncMock()
    return client
