"""
Investment model.

Represents a fixed-term deposit contract with a daily rate.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import InvestmentStatus
from app.models.types import MoneyType, RateType, UTCDateTime
from app.utils.datetime_utils import utc_now


class Investment(Base):
    """Investment model - fixed-term contracts."""

    __tablename__ = "investments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_investment_amount_positive'),
        CheckConstraint(
            'duration_days >= 1', name='check_investment_duration_min'
        ),
        CheckConstraint(
            'interest_paid >= 0', name='check_investment_interest_non_negative'
        ),
        Index('idx_investment_status_end', 'status', 'end_date'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Plan terms, copied at purchase time
    plan_code: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    total_return: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Daily accrual tracking
    interest_paid: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    last_payout_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvestmentStatus.ACTIVE.value, index=True
    )  # active, completed, cancelled, renewed

    # Contract this one was renewed from
    renewed_from_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("investments.id", ondelete="SET NULL"),
        nullable=True
    )

    start_date: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Investment(id={self.id}, account_id={self.account_id}, "
            f"plan={self.plan_code}, amount={self.amount}, status={self.status})>"
        )

    @property
    def is_active(self) -> bool:
        """Check if contract is still running."""
        return self.status == InvestmentStatus.ACTIVE.value

    def can_sell(self, now: datetime) -> bool:
        """Early exit is allowed while active and before the end date."""
        return self.is_active and now < self.end_date

    @property
    def can_renew(self) -> bool:
        """Only matured contracts can be renewed."""
        return self.status == InvestmentStatus.COMPLETED.value
