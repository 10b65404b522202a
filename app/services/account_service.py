"""
Account service.

Registration into the referral network and administrative status changes.
"""

import secrets
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.account import Account
from app.models.enums import AccountStatus
from app.repositories.account_repository import AccountRepository
from app.services.admin_log_service import (
    ACCOUNT_STATUS_CHANGE,
    SYSTEM_ADMIN,
    AdminLogService,
)
from app.services.base_service import BaseService, transaction
from app.utils.exceptions import InvalidState, NotFound


def generate_referral_code(username: str) -> str:
    """Build a referral code like MMS-JOH-3F9A1C2B."""
    prefix = (username[:3] or "MMS").upper()
    return f"MMS-{prefix}-{secrets.token_hex(4).upper()}"


def referral_link(code: str, base_url: str | None = None) -> str:
    """
    Build the registration link carrying a referral code.

    Args:
        code: Referral code
        base_url: Site URL, defaults to settings.referral_base_url

    Returns:
        Link in format {base_url}/register?ref={code}
    """
    base = (base_url or settings.referral_base_url).rstrip("/")
    return f"{base}/register?ref={code}"


class AccountService(BaseService):
    """Account lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account service."""
        super().__init__(session)
        self.account_repo = AccountRepository(session)
        self.admin_log = AdminLogService(session)

    @transaction
    async def register_account(
        self,
        username: str,
        email: str | None = None,
        referral_code: str | None = None,
    ) -> Account:
        """
        Register a new account, optionally under a referrer.

        Args:
            username: Unique username
            email: Optional contact email
            referral_code: Code of an active account to join under

        Returns:
            Created account

        Raises:
            InvalidState: If the username is taken
            NotFound: If the referral code is unknown or its owner inactive
        """
        if await self.account_repo.exists(username=username):
            raise InvalidState(f"Username {username} already exists")

        referrer_id = None
        if referral_code:
            referrer = await self.account_repo.get_by_referral_code(
                referral_code
            )
            if not referrer or not referrer.is_active:
                raise NotFound("Invalid referral code")
            referrer_id = referrer.id

        # Unlikely collision but safe to check
        while True:
            code = generate_referral_code(username)
            if not await self.account_repo.exists(referral_code=code):
                break

        account = await self.account_repo.create(
            username=username,
            email=email,
            referral_code=code,
            referrer_id=referrer_id,
        )

        self.logger.info(
            "Account registered",
            extra={
                "account_id": str(account.id),
                "has_referrer": referrer_id is not None,
            },
        )
        return account

    @transaction
    async def set_status(
        self,
        account_id: uuid.UUID,
        status: AccountStatus,
        admin_id: str = SYSTEM_ADMIN,
        ip_address: str | None = None,
    ) -> Account:
        """
        Change account status (admin). The change is written to the admin
        audit trail in the same transaction.

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_for_update(account_id)
        if not account:
            raise NotFound(f"Account {account_id} not found")

        previous = account.status
        account.status = AccountStatus(status).value
        await self.session.flush()

        await self.admin_log.log_action(
            admin_id,
            ACCOUNT_STATUS_CHANGE,
            target_type="account",
            target_id=account_id,
            details={"from": previous, "to": account.status},
            ip_address=ip_address,
        )

        self.logger.info(
            f"Account {account_id} status changed",
            extra={"from": previous, "to": account.status},
        )
        return account

    async def get_account(self, account_id: uuid.UUID) -> Account:
        """
        Get account by ID.

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if not account:
            raise NotFound(f"Account {account_id} not found")
        return account
