"""
Pure domain layer.

Money primitives and the clock abstraction. No ORM, no database, no I/O
(except ``SystemClock``).
"""

from jobcost_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from jobcost_kernel.domain.money import (
    ZERO,
    format_currency,
    percentage,
    require_non_negative,
    round_money,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ZERO",
    "format_currency",
    "percentage",
    "require_non_negative",
    "round_money",
    "to_decimal",
]
