"""
Exception handling utilities.

Defines the typed failures raised by the ledger, position, investment and
referral engines, plus categories for batch error handling.
"""

from sqlalchemy.exc import SQLAlchemyError


class LedgerError(Exception):
    """Base class for bookkeeping failures returned to the caller."""

    error_code = "ledger_error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.error_code)
        self.message = message or self.error_code


class InvalidAmount(LedgerError):
    """Raised when an amount is zero, negative or otherwise malformed."""

    error_code = "invalid_amount"


class InsufficientFunds(LedgerError):
    """Raised when a debit exceeds the available balance."""

    error_code = "insufficient_funds"


class InsufficientMargin(InsufficientFunds):
    """Raised when the free balance cannot cover a position's margin."""

    error_code = "insufficient_margin"


class BelowMinimumTrade(LedgerError):
    """Raised when a position notional is below the configured minimum."""

    error_code = "below_minimum_trade"


class AmountOutOfRange(LedgerError):
    """Raised when an amount falls outside an allowed corridor."""

    error_code = "amount_out_of_range"


class UnsupportedInstrument(LedgerError):
    """Raised when trading an instrument the platform does not quote."""

    error_code = "unsupported_instrument"


class NotFound(LedgerError):
    """Raised when a record is unknown or not owned by the caller."""

    error_code = "not_found"


class InvalidState(LedgerError):
    """Raised when a record is not in the state an operation requires."""

    error_code = "invalid_state"


# Exception categories based on handling strategy

# A single batch unit failed; roll back that unit, log and continue
UNIT_FAILURES = (
    LedgerError,
    SQLAlchemyError,
)


def is_unit_failure(exc: Exception) -> bool:
    """
    Check if exception only invalidates the current batch unit.

    Args:
        exc: Exception to check

    Returns:
        True if the batch can continue with the next unit
    """
    return isinstance(exc, UNIT_FAILURES)
