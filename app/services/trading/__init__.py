"""
Trading services package.

- calculator: profit and trigger evaluation
- position_engine: open, re-price and close positions
"""

from app.services.trading.calculator import (
    calculate_margin,
    calculate_profit,
    evaluate_triggers,
)
from app.services.trading.position_engine import PositionEngine


__all__ = [
    "PositionEngine",
    "calculate_margin",
    "calculate_profit",
    "evaluate_triggers",
]
