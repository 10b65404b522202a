"""
Position engine.

Leveraged positions against the simulated price feed. Margin is debited on
open and returned together with the realized profit on close.
"""

import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import (
    ActivityType,
    CloseReason,
    LedgerEntryKind,
    PositionSide,
    PositionStatus,
)
from app.models.position import Position
from app.repositories.position_repository import PositionRepository
from app.services.base_service import (
    BaseService,
    CycleResult,
    log_operation,
    transaction,
)
from app.services.ledger.balance_manager import BalanceManager
from app.services.pricing import PriceSource, get_price_source
from app.services.pricing.price_source import to_price
from app.services.referral.commission_processor import (
    ReferralCommissionProcessor,
)
from app.services.trading.calculator import (
    calculate_margin,
    calculate_profit,
    evaluate_triggers,
)
from app.utils.datetime_utils import utc_now
from app.utils.exceptions import (
    AmountOutOfRange,
    BelowMinimumTrade,
    InsufficientMargin,
    InvalidAmount,
    InvalidState,
    NotFound,
    UnsupportedInstrument,
)
from app.utils.money import ZERO, parse_money, to_money


def _trigger_price(value: Decimal | int | str | None) -> Decimal | None:
    """Normalize an optional stop-loss or take-profit price."""
    if value is None:
        return None
    price = parse_money(value)
    if price <= ZERO:
        raise InvalidAmount(f"Trigger price must be positive, got {value!r}")
    return to_price(price)


class PositionEngine(BaseService):
    """Opens, re-prices and closes leveraged positions."""

    def __init__(
        self,
        session: AsyncSession,
        price_source: PriceSource | None = None,
    ) -> None:
        """
        Initialize position engine.

        Args:
            session: Async database session
            price_source: Quote provider, the shared simulated feed by default
        """
        super().__init__(session)
        self.price_source = price_source or get_price_source()
        self.position_repo = PositionRepository(session)
        self.balance_manager = BalanceManager(session)
        self.commission_processor = ReferralCommissionProcessor(session)

    @transaction
    async def open_position(
        self,
        account_id: uuid.UUID,
        instrument: str,
        side: PositionSide | str,
        notional: Decimal,
        leverage: int | None = None,
        stop_loss: Decimal | None = None,
        take_profit: Decimal | None = None,
    ) -> Position:
        """
        Open a position and lock its margin.

        Args:
            account_id: Trading account
            instrument: Instrument symbol, e.g. XAUUSD
            side: long or short
            notional: Position size
            leverage: Integer leverage, settings.default_leverage if omitted
            stop_loss: Optional stop-loss price
            take_profit: Optional take-profit price

        Returns:
            Opened position

        Raises:
            BelowMinimumTrade: notional below settings.min_trade_amount
            AmountOutOfRange: notional above settings.max_trade_amount
            InvalidAmount: malformed notional or trigger price, or leverage
                outside [1, settings.max_leverage]
            UnsupportedInstrument: instrument not traded
            InsufficientMargin: margin exceeds the free balance
            InvalidState: account is not active
        """
        value = parse_money(notional)
        if value < settings.min_trade_amount:
            raise BelowMinimumTrade(
                f"Minimum trade amount is {settings.min_trade_amount}"
            )
        if value > settings.max_trade_amount:
            raise AmountOutOfRange(
                f"Maximum trade amount is {settings.max_trade_amount}"
            )

        leverage = settings.default_leverage if leverage is None else leverage
        if (
            isinstance(leverage, bool)
            or not isinstance(leverage, int)
            or not 1 <= leverage <= settings.max_leverage
        ):
            raise InvalidAmount(
                f"Leverage must be an integer between 1 and {settings.max_leverage}"
            )

        symbol = instrument.upper()
        if symbol not in settings.get_supported_instruments():
            raise UnsupportedInstrument(f"Instrument {instrument} is not supported")

        try:
            position_side = PositionSide(side)
        except ValueError as e:
            raise InvalidState(f"Unknown position side: {side}") from e

        stop_price = _trigger_price(stop_loss)
        target_price = _trigger_price(take_profit)

        account = await self.balance_manager.lock_account(account_id)
        if not account.is_active:
            raise InvalidState(f"Account {account_id} is {account.status}")

        margin = calculate_margin(value, leverage)
        if margin > account.balance:
            raise InsufficientMargin(
                f"Margin {margin} exceeds free balance {account.balance}"
            )

        quote = await self.price_source.get_quote(symbol)
        open_price = quote.ask if position_side == PositionSide.LONG else quote.bid

        await self.balance_manager.debit(
            account_id,
            margin,
            LedgerEntryKind.TRADE_MARGIN,
            f"{position_side.value.upper()} {symbol} - Margin",
        )

        position = await self.position_repo.create(
            account_id=account_id,
            instrument=symbol,
            side=position_side.value,
            notional=value,
            leverage=leverage,
            margin=margin,
            open_price=open_price,
            current_price=quote.mid,
            stop_loss=stop_price,
            take_profit=target_price,
            profit=ZERO,
            status=PositionStatus.OPEN.value,
        )

        await self.commission_processor.process_referral_commissions(
            account_id, value, ActivityType.TRADING
        )

        self.logger.info(
            f"Position {position.id} opened",
            extra={
                "account_id": str(account_id),
                "instrument": symbol,
                "side": position_side.value,
                "notional": str(value),
                "leverage": leverage,
                "open_price": str(open_price),
            },
        )
        return position

    @transaction
    async def close_position(
        self,
        account_id: uuid.UUID,
        position_id: uuid.UUID,
    ) -> Position:
        """
        Close an open position at the current mark price.

        Raises:
            NotFound: position unknown or owned by another account
            InvalidState: position already closed
        """
        position = await self.position_repo.get_for_update(position_id)
        if not position or position.account_id != account_id:
            raise NotFound(f"Position {position_id} not found")
        if not position.is_open:
            raise InvalidState(f"Position {position_id} is already closed")

        quote = await self.price_source.get_quote(position.instrument)
        await self._settle(position, quote.mid, CloseReason.MANUAL)
        return position

    @log_operation
    async def reprice_open_positions(self) -> CycleResult:
        """
        Mark every open position to market and fire triggers.

        Each position is handled in its own transaction.

        Returns:
            CycleResult for the batch
        """
        position_ids = await self.position_repo.get_open_position_ids()
        result = await self.process_units(
            position_ids, self.reprice_position, "position"
        )

        self.logger.info(
            "Position re-pricing finished",
            extra={
                "processed": result.processed,
                "failed": result.failed,
                "skipped": result.skipped,
            },
        )
        return result

    async def reprice_position(self, position_id: uuid.UUID) -> bool:
        """
        Re-price one position; close it when a trigger fires.

        Does not commit. Returns False when the position is no longer open.
        """
        position = await self.position_repo.get_for_update(position_id)
        if not position or not position.is_open:
            return False

        quote = await self.price_source.get_quote(position.instrument)
        mark = quote.mid

        position.current_price = mark
        position.profit = calculate_profit(
            position.side,
            position.open_price,
            mark,
            position.leverage,
            position.notional,
        )

        reason = evaluate_triggers(
            position.side, mark, position.stop_loss, position.take_profit
        )
        if reason is not None:
            await self._settle(position, mark, reason)
        else:
            await self.session.flush()
        return True

    async def get_positions(
        self,
        account_id: uuid.UUID,
        status: PositionStatus | None = None,
    ) -> list[Position]:
        """Positions of an account, newest first."""
        return await self.position_repo.get_by_account(
            account_id, status=PositionStatus(status).value if status else None
        )

    async def _settle(
        self, position: Position, mark: Decimal, reason: CloseReason
    ) -> None:
        profit = calculate_profit(
            position.side,
            position.open_price,
            mark,
            position.leverage,
            position.notional,
        )
        position.current_price = mark
        position.profit = profit
        position.status = PositionStatus.CLOSED.value
        position.close_reason = reason.value
        position.closed_at = utc_now()

        payout = to_money(position.margin + profit)
        if payout > ZERO:
            await self.balance_manager.credit(
                position.account_id,
                payout,
                LedgerEntryKind.TRADE_SETTLEMENT,
                f"Closed {position.side.upper()} {position.instrument} "
                f"({reason.value}) - P&L: {profit}",
            )
        else:
            position.shortfall = -payout
            self.logger.warning(
                f"Position {position.id} closed with loss beyond margin",
                extra={
                    "account_id": str(position.account_id),
                    "margin": str(position.margin),
                    "profit": str(profit),
                    "shortfall": str(position.shortfall),
                },
            )

        await self.session.flush()

        self.logger.info(
            f"Position {position.id} closed",
            extra={
                "reason": reason.value,
                "close_price": str(mark),
                "profit": str(profit),
            },
        )
