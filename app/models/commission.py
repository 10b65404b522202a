"""
Commission model.

Referral commission queued by a trade or deposit and paid by the
disbursement cycle.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import CommissionStatus
from app.models.types import MoneyType, RateType, UTCDateTime
from app.utils.datetime_utils import utc_now


class Commission(Base):
    """Commission model - referral earnings."""

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint(
            'level >= 1 AND level <= 3',
            name='check_commission_level_range'
        ),
        CheckConstraint(
            'amount > 0', name='check_commission_amount_positive'
        ),
        Index('idx_commission_status_created', 'status', 'created_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Whose activity generated the commission
    source_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # Who receives it
    beneficiary_account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    percentage: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    activity_type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # trading, deposit, bonus

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommissionStatus.PENDING.value, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, beneficiary={self.beneficiary_account_id}, "
            f"level={self.level}, amount={self.amount}, status={self.status})>"
        )
