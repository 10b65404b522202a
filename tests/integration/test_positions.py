"""Integration tests for the position engine."""

from decimal import Decimal

import pytest

from app.models import (
    AccountStatus,
    CloseReason,
    LedgerEntryKind,
    PositionSide,
    PositionStatus,
)
from app.services.account_service import AccountService
from app.services.ledger import LedgerService
from app.services.pricing import StaticPriceSource
from app.services.trading import PositionEngine
from app.utils.exceptions import (
    AmountOutOfRange,
    BelowMinimumTrade,
    InsufficientMargin,
    InvalidAmount,
    InvalidState,
    LedgerError,
    NotFound,
    UnsupportedInstrument,
)


class TestOpenPosition:
    """Integration tests for opening positions."""

    @pytest.mark.asyncio
    async def test_open_long_debits_margin(
        self, session, make_account, price_source, balance_of
    ):
        """Long opens at the ask and locks notional / leverage."""
        account = await make_account("trader", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)

        position = await engine.open_position(
            account.id, "xauusd", PositionSide.LONG, Decimal("1000"), leverage=100
        )

        assert position.instrument == "XAUUSD"
        assert position.open_price == Decimal("2385.5")
        assert position.current_price == Decimal("2385")
        assert position.margin == Decimal("10")
        assert position.status == PositionStatus.OPEN.value
        assert await balance_of(account.id) == Decimal("990")

        history = await LedgerService(session).get_history(account.id)
        assert LedgerEntryKind.TRADE_MARGIN.value in {e.kind for e in history}

    @pytest.mark.asyncio
    async def test_open_short_uses_bid(self, session, make_account, price_source):
        """Short opens at the bid."""
        account = await make_account("shorty", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)

        position = await engine.open_position(
            account.id, "XAUUSD", "short", Decimal("1000")
        )

        assert position.open_price == Decimal("2384.5")
        assert position.leverage == 100

    @pytest.mark.asyncio
    async def test_validation_errors(self, session, make_account, price_source):
        """Bad trade parameters are rejected before touching the balance."""
        account = await make_account("picky", funds=Decimal("1000"))
        account_id = account.id
        engine = PositionEngine(session, price_source=price_source)

        with pytest.raises(BelowMinimumTrade):
            await engine.open_position(account_id, "XAUUSD", "long", Decimal("5"))
        with pytest.raises(AmountOutOfRange):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("100001")
            )
        with pytest.raises(InvalidAmount):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("100"), leverage=501
            )
        with pytest.raises(UnsupportedInstrument):
            await engine.open_position(account_id, "EURUSD", "long", Decimal("100"))
        with pytest.raises(InvalidState):
            await engine.open_position(
                account_id, "XAUUSD", "sideways", Decimal("100")
            )

    @pytest.mark.asyncio
    async def test_malformed_input_raises_ledger_error(
        self, session, make_account, price_source, balance_of
    ):
        """Floats and garbage in amounts or trigger prices are InvalidAmount."""
        account = await make_account("sloppy", funds=Decimal("1000"))
        account_id = account.id
        engine = PositionEngine(session, price_source=price_source)

        with pytest.raises(LedgerError):
            await engine.open_position(account_id, "XAUUSD", "long", 1000.0)
        with pytest.raises(InvalidAmount):
            await engine.open_position(account_id, "XAUUSD", "long", "abc")
        with pytest.raises(InvalidAmount):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("100"), stop_loss=2300.5
            )
        with pytest.raises(InvalidAmount):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("100"), take_profit="high"
            )
        with pytest.raises(InvalidAmount):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("100"), stop_loss=Decimal("-1")
            )

        assert await balance_of(account_id) == Decimal("1000")
        assert await engine.get_positions(account_id) == []

    @pytest.mark.asyncio
    async def test_insufficient_margin(
        self, session, make_account, price_source, balance_of
    ):
        """Margin above the free balance is rejected."""
        account = await make_account("broke", funds=Decimal("10"))
        account_id = account.id
        engine = PositionEngine(session, price_source=price_source)

        with pytest.raises(InsufficientMargin):
            await engine.open_position(
                account_id, "XAUUSD", "long", Decimal("2000"), leverage=100
            )

        assert await balance_of(account_id) == Decimal("10")
        assert await engine.get_positions(account_id) == []

    @pytest.mark.asyncio
    async def test_suspended_account_cannot_trade(
        self, session, make_account, price_source
    ):
        """Only active accounts can open positions."""
        account = await make_account("frozen", funds=Decimal("1000"))
        account_id = account.id
        await AccountService(session).set_status(
            account_id, AccountStatus.SUSPENDED
        )

        with pytest.raises(InvalidState):
            await PositionEngine(session, price_source=price_source).open_position(
                account_id, "XAUUSD", "long", Decimal("100")
            )


class TestClosePosition:
    """Integration tests for closing positions."""

    @pytest.mark.asyncio
    async def test_round_trip_restores_balance(
        self, session, make_account, price_source, balance_of
    ):
        """Closing at the open price returns exactly the margin."""
        account = await make_account("roundtrip", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)

        position = await engine.open_position(
            account.id, "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        price_source.set_mid("XAUUSD", Decimal("2385.5"))
        closed = await engine.close_position(account.id, position.id)

        assert closed.status == PositionStatus.CLOSED.value
        assert closed.close_reason == CloseReason.MANUAL.value
        assert closed.profit == Decimal("0")
        assert closed.closed_at is not None
        assert await balance_of(account.id) == Decimal("1000")

        report = await LedgerService(session).reconcile(account.id)
        assert report.is_consistent is True

    @pytest.mark.asyncio
    async def test_close_with_profit(
        self, session, make_account, price_source, balance_of
    ):
        """Profit is credited together with the margin."""
        account = await make_account("winner", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)

        position = await engine.open_position(
            account.id, "XAUUSD", "long", Decimal("1000"), leverage=10
        )
        # open 2385.5, mark 2409.355 -> 1% move x10 = 100.00
        price_source.set_mid("XAUUSD", Decimal("2409.355"))
        closed = await engine.close_position(account.id, position.id)

        assert closed.profit == Decimal("100.00")
        assert await balance_of(account.id) == Decimal("1100")

    @pytest.mark.asyncio
    async def test_loss_beyond_margin_records_shortfall(
        self, session, make_account, price_source, balance_of
    ):
        """Balance never goes negative; the excess loss is flagged."""
        account = await make_account("loser", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)

        position = await engine.open_position(
            account.id, "XAUUSD", "long", Decimal("1000"), leverage=100
        )
        # 1% drop x100 = -1000 against a margin of 10
        price_source.set_mid("XAUUSD", Decimal("2361.645"))
        closed = await engine.close_position(account.id, position.id)

        assert closed.profit == Decimal("-1000.00")
        assert closed.shortfall == Decimal("990.00")
        assert await balance_of(account.id) == Decimal("990")

    @pytest.mark.asyncio
    async def test_close_other_owner_or_twice(
        self, session, make_account, price_source
    ):
        """Foreign positions are not found, closed ones cannot close again."""
        owner = await make_account("owner", funds=Decimal("1000"))
        other = await make_account("other", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)
        position = await engine.open_position(
            owner.id, "XAUUSD", "long", Decimal("100")
        )
        owner_id, other_id, position_id = owner.id, other.id, position.id

        with pytest.raises(NotFound):
            await engine.close_position(other_id, position_id)

        await engine.close_position(owner_id, position_id)
        with pytest.raises(InvalidState):
            await engine.close_position(owner_id, position_id)


class TestRepricing:
    """Integration tests for the re-pricing cycle."""

    @pytest.mark.asyncio
    async def test_reprice_updates_open_positions(
        self, session, make_account, price_source
    ):
        """Mark and unrealized profit follow the feed."""
        account = await make_account("marked", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)
        position = await engine.open_position(
            account.id, "XAUUSD", "long", Decimal("1000"), leverage=10
        )

        price_source.set_mid("XAUUSD", Decimal("2409.355"))
        result = await engine.reprice_open_positions()

        assert result.processed == 1
        assert result.failed == 0
        assert position.current_price == Decimal("2409.355")
        assert position.profit == Decimal("100.00")
        assert position.status == PositionStatus.OPEN.value

    @pytest.mark.asyncio
    async def test_stop_loss_wins_over_take_profit(
        self, session, make_account, price_source, balance_of
    ):
        """A tick crossing both levels closes the position as stop-loss."""
        account = await make_account("stopped", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)
        position = await engine.open_position(
            account.id,
            "XAUUSD",
            "long",
            Decimal("1000"),
            leverage=100,
            stop_loss=Decimal("2380"),
            take_profit=Decimal("2370"),
        )

        price_source.set_mid("XAUUSD", Decimal("2379"))
        await engine.reprice_open_positions()

        assert position.status == PositionStatus.CLOSED.value
        assert position.close_reason == CloseReason.STOP_LOSS.value

    @pytest.mark.asyncio
    async def test_take_profit_closes_position(
        self, session, make_account, price_source, balance_of
    ):
        """Crossing the target closes with the profit credited."""
        account = await make_account("target", funds=Decimal("1000"))
        engine = PositionEngine(session, price_source=price_source)
        position = await engine.open_position(
            account.id,
            "XAUUSD",
            "long",
            Decimal("1000"),
            leverage=10,
            take_profit=Decimal("2400"),
        )

        price_source.set_mid("XAUUSD", Decimal("2409.355"))
        await engine.reprice_open_positions()

        assert position.close_reason == CloseReason.TAKE_PROFIT.value
        assert await balance_of(account.id) == Decimal("1100")

    @pytest.mark.asyncio
    async def test_failing_position_does_not_block_batch(
        self, session, make_account, price_source
    ):
        """A position without a quote fails alone; the rest is re-priced."""
        account = await make_account("mixed", funds=Decimal("1000"))
        account_id = account.id
        engine = PositionEngine(session, price_source=price_source)
        gold = await engine.open_position(
            account_id, "XAUUSD", "long", Decimal("1000"), leverage=10
        )
        await engine.open_position(
            account_id, "XAGUSD", "long", Decimal("100"), leverage=10
        )
        gold_id = gold.id

        gold_only = StaticPriceSource({"XAUUSD": Decimal("2390")})
        result = await PositionEngine(
            session, price_source=gold_only
        ).reprice_open_positions()

        assert result.processed == 1
        assert result.failed == 1
        assert len(result.errors) == 1

        open_positions = await engine.get_positions(
            account_id, status=PositionStatus.OPEN
        )
        assert len(open_positions) == 2
        gold = next(p for p in open_positions if p.id == gold_id)
        assert gold.current_price == Decimal("2390")
