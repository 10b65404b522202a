"""
Admin log service.

Writes the audit trail of administrative operations. Entries are flushed
into the caller's transaction so they commit or roll back together with
the change they describe.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.admin_action import AdminAction
from app.repositories.admin_action_repository import AdminActionRepository
from app.services.base_service import BaseService

# Action types
BALANCE_ADJUSTMENT = "BALANCE_ADJUSTMENT"
ACCOUNT_STATUS_CHANGE = "ACCOUNT_STATUS_CHANGE"

# Operator recorded when no admin identity is supplied
SYSTEM_ADMIN = "system"


class AdminLogService(BaseService):
    """Audit trail for admin operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize admin log service."""
        super().__init__(session)
        self.action_repo = AdminActionRepository(session)

    async def log_action(
        self,
        admin_id: str,
        action_type: str,
        target_type: str | None = None,
        target_id: Any = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
    ) -> AdminAction:
        """
        Record an admin action.

        Args:
            admin_id: Operator identity
            action_type: Action type, e.g. BALANCE_ADJUSTMENT
            target_type: Affected entity type
            target_id: Affected entity ID, stored as a string
            details: JSON-serializable context (amounts as strings)
            ip_address: Operator address, if known

        Returns:
            Created admin action
        """
        action = await self.action_repo.create(
            admin_id=str(admin_id or SYSTEM_ADMIN),
            action_type=action_type,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            details=details,
            ip_address=ip_address,
        )
        self.logger.info(
            f"Admin action {action_type} by {action.admin_id}",
            extra={"target_type": target_type, "target_id": action.target_id},
        )
        return action

    async def get_recent_actions(self, limit: int = 50) -> list[AdminAction]:
        """Get the latest admin actions, newest first."""
        return await self.action_repo.get_recent(limit)

    async def get_target_history(
        self, target_type: str, target_id: Any
    ) -> list[AdminAction]:
        """Get the audit trail of one entity, oldest first."""
        return await self.action_repo.get_by_target(target_type, str(target_id))
