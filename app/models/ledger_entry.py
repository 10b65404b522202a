"""
Ledger entry model.

Append-only record of every balance change. Completed entries are never
updated; the sum of completed entries for an account equals its balance.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import LedgerEntryStatus
from app.models.types import MoneyType, UTCDateTime
from app.utils.datetime_utils import utc_now


class LedgerEntry(Base):
    """Ledger entry model - signed balance change."""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint(
            'account_id', 'reference', name='uq_ledger_entry_account_reference'
        ),
        Index('idx_ledger_entry_account_created', 'account_id', 'created_at'),
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

    # Credit > 0, debit < 0
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    fee: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    balance_after: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    kind: Mapped[str] = mapped_column(
        String(30), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=LedgerEntryStatus.COMPLETED.value
    )
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Idempotency key for batch credits
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LedgerEntry(id={self.id}, account_id={self.account_id}, "
            f"kind={self.kind}, amount={self.amount})>"
        )
