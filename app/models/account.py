"""
Account model.

Represents a registered platform account with its cash balance and
position in the referral network.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import AccountStatus
from app.models.types import MoneyType, UTCDateTime
from app.utils.datetime_utils import utc_now


class Account(Base):
    """Account model - balance holder and referral network node."""

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            'balance >= 0', name='check_account_balance_non_negative'
        ),
    )

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Profile
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )

    # Balance, mutated only through the ledger
    balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Referral
    referral_code: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    referrer_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Status
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AccountStatus.ACTIVE.value, index=True
    )  # active, inactive, suspended

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, username={self.username}, "
            f"balance={self.balance}, status={self.status})>"
        )

    @property
    def is_active(self) -> bool:
        """Check if account is active."""
        return self.status == AccountStatus.ACTIVE.value

    @property
    def is_suspended(self) -> bool:
        """Check if account is suspended."""
        return self.status == AccountStatus.SUSPENDED.value
