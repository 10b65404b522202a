"""
Standard type definitions for database models.

Provides consistent types for monetary, rate and timestamp fields across all models.
"""

from datetime import UTC, datetime

from sqlalchemy import DECIMAL, DateTime
from sqlalchemy.types import TypeDecorator

# Standard money type for amounts, balances, commissions
# Precision: 18 digits total, 8 after decimal point
# Range: up to 9,999,999,999.99999999
MoneyType = DECIMAL(18, 8)

# Price type for instrument quotes
# Precision: 18 digits total, 6 after decimal point
PriceType = DECIMAL(18, 6)

# Rate type for fractional rates (0.055 = 5.5%)
# Precision: 10 digits total, 6 after decimal point
RateType = DECIMAL(10, 6)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    Backends without native timezone support (SQLite) return naive values;
    those are re-attached to UTC on load.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
