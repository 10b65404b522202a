"""
Admin statistics service.

Platform-wide totals for the admin dashboard. Each section is one
aggregate query using SQL CASE expressions.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.admin_action import AdminAction
from app.models.enums import (
    AccountStatus,
    InvestmentStatus,
    LedgerEntryKind,
    LedgerEntryStatus,
    PositionStatus,
)
from app.models.investment import Investment
from app.models.ledger_entry import LedgerEntry
from app.models.position import Position
from app.repositories.admin_action_repository import AdminActionRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import utc_now
from app.utils.money import ZERO, to_money


def _money(value: Any) -> Decimal:
    """Normalize an aggregate result (None, float or Decimal) to money."""
    if value is None:
        return ZERO
    return to_money(Decimal(str(value)))


@dataclass
class AdminDashboardStats:
    """Platform totals shown on the admin dashboard."""

    # Accounts
    total_accounts: int = 0
    active_accounts: int = 0
    new_accounts_today: int = 0
    new_accounts_week: int = 0

    # Ledger
    total_entries: int = 0
    entries_today: int = 0
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO

    # Positions
    total_positions: int = 0
    open_positions: int = 0
    total_profit: Decimal = ZERO
    total_loss: Decimal = ZERO

    # Investments
    total_investments: int = 0
    active_investments: int = 0
    total_invested: Decimal = ZERO
    total_returns: Decimal = ZERO


@dataclass
class AdminDashboardData:
    """Dashboard totals together with the latest records of each kind."""

    stats: AdminDashboardStats
    recent_accounts: list[Account] = field(default_factory=list)
    recent_entries: list[LedgerEntry] = field(default_factory=list)
    recent_positions: list[Position] = field(default_factory=list)
    recent_investments: list[Investment] = field(default_factory=list)
    recent_actions: list[AdminAction] = field(default_factory=list)


class AdminStatsService(BaseService):
    """Service for collecting admin dashboard statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize admin stats service."""
        super().__init__(session)
        self.action_repo = AdminActionRepository(session)

    async def get_dashboard_stats(
        self, now: datetime | None = None
    ) -> AdminDashboardStats:
        """
        Get platform totals.

        Deposits count external funding only (positive deposit entries);
        withdrawals count money leaving the platform (negative withdrawal
        entries). Investment principal and early-exit refunds share those
        kinds with the opposite sign and are excluded.

        Args:
            now: Reference time for the "today" and "week" windows

        Returns:
            AdminDashboardStats
        """
        now = now or utc_now()
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = now - timedelta(days=7)

        stats = AdminDashboardStats()

        result = await self.session.execute(
            select(
                func.count(Account.id).label("total"),
                func.sum(
                    case((Account.status == AccountStatus.ACTIVE.value, 1), else_=0)
                ).label("active"),
                func.sum(
                    case((Account.created_at >= today_start, 1), else_=0)
                ).label("new_today"),
                func.sum(
                    case((Account.created_at >= week_start, 1), else_=0)
                ).label("new_week"),
            )
        )
        row = result.one()
        stats.total_accounts = row.total or 0
        stats.active_accounts = row.active or 0
        stats.new_accounts_today = row.new_today or 0
        stats.new_accounts_week = row.new_week or 0

        completed = LedgerEntry.status == LedgerEntryStatus.COMPLETED.value
        result = await self.session.execute(
            select(
                func.count(LedgerEntry.id).label("total"),
                func.sum(
                    case((LedgerEntry.created_at >= today_start, 1), else_=0)
                ).label("today"),
                func.sum(
                    case(
                        (
                            completed
                            & (LedgerEntry.kind == LedgerEntryKind.DEPOSIT.value)
                            & (LedgerEntry.amount > 0),
                            LedgerEntry.amount,
                        ),
                        else_=0,
                    )
                ).label("deposits"),
                func.sum(
                    case(
                        (
                            completed
                            & (LedgerEntry.kind == LedgerEntryKind.WITHDRAWAL.value)
                            & (LedgerEntry.amount < 0),
                            -LedgerEntry.amount,
                        ),
                        else_=0,
                    )
                ).label("withdrawals"),
            )
        )
        row = result.one()
        stats.total_entries = row.total or 0
        stats.entries_today = row.today or 0
        stats.total_deposits = _money(row.deposits)
        stats.total_withdrawals = _money(row.withdrawals)

        result = await self.session.execute(
            select(
                func.count(Position.id).label("total"),
                func.sum(
                    case((Position.status == PositionStatus.OPEN.value, 1), else_=0)
                ).label("open"),
                func.sum(
                    case((Position.profit > 0, Position.profit), else_=0)
                ).label("profit"),
                func.sum(
                    case((Position.profit < 0, -Position.profit), else_=0)
                ).label("loss"),
            )
        )
        row = result.one()
        stats.total_positions = row.total or 0
        stats.open_positions = row.open or 0
        stats.total_profit = _money(row.profit)
        stats.total_loss = _money(row.loss)

        # Renewed contracts completed and paid out before rolling over
        paid_out = Investment.status.in_(
            [InvestmentStatus.COMPLETED.value, InvestmentStatus.RENEWED.value]
        )
        result = await self.session.execute(
            select(
                func.count(Investment.id).label("total"),
                func.sum(
                    case(
                        (Investment.status == InvestmentStatus.ACTIVE.value, 1),
                        else_=0,
                    )
                ).label("active"),
                func.sum(Investment.amount).label("invested"),
                func.sum(
                    case((paid_out, Investment.total_return), else_=0)
                ).label("returns"),
            )
        )
        row = result.one()
        stats.total_investments = row.total or 0
        stats.active_investments = row.active or 0
        stats.total_invested = _money(row.invested)
        stats.total_returns = _money(row.returns)

        self.logger.debug(
            f"AdminStatsService: accounts={stats.total_accounts}, "
            f"positions={stats.total_positions}, "
            f"investments={stats.total_investments}"
        )
        return stats

    async def get_dashboard_data(
        self, limit: int = 10, now: datetime | None = None
    ) -> AdminDashboardData:
        """
        Get dashboard totals and the latest records.

        Args:
            limit: Number of recent records of each kind
            now: Reference time for the stats windows

        Returns:
            AdminDashboardData
        """
        stats = await self.get_dashboard_stats(now)

        return AdminDashboardData(
            stats=stats,
            recent_accounts=await self._latest(Account, Account.created_at, limit),
            recent_entries=await self._latest(
                LedgerEntry, LedgerEntry.created_at, limit
            ),
            recent_positions=await self._latest(
                Position, Position.opened_at, limit
            ),
            recent_investments=await self._latest(
                Investment, Investment.start_date, limit
            ),
            recent_actions=await self.action_repo.get_recent(limit),
        )

    async def _latest(self, model: Any, order_column: Any, limit: int) -> list:
        result = await self.session.execute(
            select(model).order_by(order_column.desc()).limit(limit)
        )
        return list(result.scalars().all())
