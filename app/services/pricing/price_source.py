"""
Price sources.

The position engine only sees PriceSource.get_quote(). Two implementations
ship: a random walk around fixed base prices, and a static table used by
tests and demos.
"""

import asyncio
import random
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from loguru import logger

from app.config.business_constants import (
    BASE_PRICES,
    DEFAULT_BASE_PRICE,
    PRICE_FLOOR_RATIO,
)
from app.config.settings import settings
from app.utils.exceptions import UnsupportedInstrument

PRICE_QUANT = Decimal("0.000001")


def to_price(value: Decimal) -> Decimal:
    """Quantize a price to the precision of PriceType."""
    return value.quantize(PRICE_QUANT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Quote:
    """Two-sided quote for one instrument."""

    instrument: str
    bid: Decimal
    ask: Decimal

    @property
    def mid(self) -> Decimal:
        """Mid price, used as the mark for open positions."""
        return to_price((self.bid + self.ask) / 2)

    @classmethod
    def from_mid(
        cls, instrument: str, mid: Decimal, half_spread: Decimal
    ) -> "Quote":
        """Build a quote symmetric around a mid price."""
        return cls(
            instrument=instrument,
            bid=to_price(mid - half_spread),
            ask=to_price(mid + half_spread),
        )


class PriceSource(Protocol):
    """Anything that can quote an instrument."""

    async def get_quote(self, instrument: str) -> Quote:
        ...


class RandomWalkPriceSource:
    """
    Simulated feed: each call moves the mid by a uniform step of up to
    volatility x base price, never below PRICE_FLOOR_RATIO x base.
    """

    def __init__(
        self,
        base_prices: dict[str, Decimal] | None = None,
        volatility: Decimal | None = None,
        half_spread: Decimal | None = None,
        seed: int | None = None,
    ) -> None:
        self.base_prices = dict(base_prices or BASE_PRICES)
        self.volatility = (
            settings.price_volatility if volatility is None else volatility
        )
        self.half_spread = (
            settings.price_half_spread if half_spread is None else half_spread
        )
        self._random = random.Random(seed)
        self._mids: dict[str, Decimal] = {}
        self._lock = asyncio.Lock()

    def _base_price(self, instrument: str) -> Decimal:
        return self.base_prices.get(instrument, DEFAULT_BASE_PRICE)

    async def get_quote(self, instrument: str) -> Quote:
        """
        Advance the walk for an instrument and quote it.

        Raises:
            UnsupportedInstrument: If the instrument is not traded
        """
        symbol = instrument.upper()
        if symbol not in settings.get_supported_instruments():
            raise UnsupportedInstrument(f"Instrument {instrument} is not supported")

        async with self._lock:
            base = self._base_price(symbol)
            last = self._mids.get(symbol, base)
            step = Decimal(str(self._random.uniform(-1.0, 1.0)))
            change = step * self.volatility * base
            mid = to_price(max(last + change, base * PRICE_FLOOR_RATIO))
            self._mids[symbol] = mid

        logger.debug(
            f"Quoted {symbol} at mid {mid}",
            extra={"instrument": symbol, "mid": str(mid)},
        )
        return Quote.from_mid(symbol, mid, self.half_spread)


class StaticPriceSource:
    """Fixed mid prices that only move when set explicitly."""

    def __init__(
        self,
        mids: dict[str, Decimal] | None = None,
        half_spread: Decimal | None = None,
    ) -> None:
        self.half_spread = (
            settings.price_half_spread if half_spread is None else half_spread
        )
        self._mids = {
            symbol.upper(): to_price(Decimal(price))
            for symbol, price in (mids or BASE_PRICES).items()
        }

    def set_mid(self, instrument: str, mid: Decimal) -> None:
        """Move an instrument to a new mid price."""
        self._mids[instrument.upper()] = to_price(Decimal(mid))

    async def get_quote(self, instrument: str) -> Quote:
        """
        Quote an instrument at its configured mid.

        Raises:
            UnsupportedInstrument: If no price is configured
        """
        symbol = instrument.upper()
        if symbol not in self._mids:
            raise UnsupportedInstrument(f"No price for instrument {instrument}")
        return Quote.from_mid(symbol, self._mids[symbol], self.half_spread)


# Shared feed so the walk continues across cycles
_price_source: PriceSource | None = None


def get_price_source() -> PriceSource:
    """Get the process-wide price source, creating the random walk lazily."""
    global _price_source
    if _price_source is None:
        _price_source = RandomWalkPriceSource()
        logger.info("Random walk price source initialized")
    return _price_source


def set_price_source(source: PriceSource | None) -> None:
    """Replace the process-wide price source (None resets to default)."""
    global _price_source
    _price_source = source
