"""
Admin action model.

Audit trail of administrative operations. Rows are written in the same
transaction as the change they describe and are never updated.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import UTCDateTime
from app.utils.datetime_utils import utc_now


class AdminAction(Base):
    """Admin action model - one audited administrative operation."""

    __tablename__ = "admin_actions"
    __table_args__ = (
        Index('idx_admin_action_target', 'target_type', 'target_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Operator identity as supplied by the caller
    admin_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    action_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )  # BALANCE_ADJUSTMENT, ACCOUNT_STATUS_CHANGE

    # Affected entity, e.g. ("account", "<uuid>")
    target_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    target_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, nullable=False, index=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AdminAction(id={self.id}, admin_id={self.admin_id}, "
            f"action_type={self.action_type}, target_id={self.target_id})>"
        )
