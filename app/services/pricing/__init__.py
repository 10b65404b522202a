"""
Pricing package.

Simulated market quotes behind the PriceSource interface.
"""

from app.services.pricing.price_source import (
    PriceSource,
    Quote,
    RandomWalkPriceSource,
    StaticPriceSource,
    get_price_source,
    set_price_source,
)


__all__ = [
    "PriceSource",
    "Quote",
    "RandomWalkPriceSource",
    "StaticPriceSource",
    "get_price_source",
    "set_price_source",
]
