"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """
    Get the UTC start of a month and the start of the following month.

    Args:
        year: Calendar year
        month: Calendar month (1-12)

    Returns:
        Tuple of (month_start, next_month_start)
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    start = datetime(year, month, 1, tzinfo=UTC)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(year, month + 1, 1, tzinfo=UTC)
    return start, end
