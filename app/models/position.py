"""
Position model.

Represents a leveraged position on a simulated instrument price.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import PositionSide, PositionStatus
from app.models.types import MoneyType, PriceType, UTCDateTime
from app.utils.datetime_utils import utc_now


class Position(Base):
    """Position model - leveraged long/short exposure."""

    __tablename__ = "positions"
    __table_args__ = (
        CheckConstraint('leverage >= 1', name='check_position_leverage_min'),
        CheckConstraint('notional > 0', name='check_position_notional_positive'),
        CheckConstraint('margin > 0', name='check_position_margin_positive'),
        Index('idx_position_account_status', 'account_id', 'status'),
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

    # Trade details
    instrument: Mapped[str] = mapped_column(String(20), nullable=False)
    side: Mapped[str] = mapped_column(String(10), nullable=False)  # long, short
    notional: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    leverage: Mapped[int] = mapped_column(Integer, nullable=False)
    margin: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Prices
    open_price: Mapped[Decimal] = mapped_column(PriceType, nullable=False)
    current_price: Mapped[Decimal] = mapped_column(PriceType, nullable=False)
    stop_loss: Mapped[Decimal | None] = mapped_column(PriceType, nullable=True)
    take_profit: Mapped[Decimal | None] = mapped_column(PriceType, nullable=True)

    # Unrealized while open, realized once closed
    profit: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    # Loss beyond margin, flagged for reconciliation
    shortfall: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )

    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=PositionStatus.OPEN.value, index=True
    )
    close_reason: Mapped[str | None] = mapped_column(String(20), nullable=True)

    opened_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    closed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Position(id={self.id}, account_id={self.account_id}, "
            f"{self.side} {self.instrument} notional={self.notional}, "
            f"status={self.status})>"
        )

    @property
    def is_open(self) -> bool:
        """Check if position is still open."""
        return self.status == PositionStatus.OPEN.value

    @property
    def is_long(self) -> bool:
        """Check if position is long."""
        return self.side == PositionSide.LONG.value
