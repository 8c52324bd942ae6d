"""
Expense Helpers (``jobcost_modules.expense.helpers``).

Responsibility
--------------
Pure labor costing functions: the effective hourly rate for a time entry,
the labor amount it produces, and the description written on the LABOR
expense.  Stateless, no store, no clock.

Invariants enforced
-------------------
* All numeric inputs and outputs use ``Decimal`` -- NEVER ``float``.
* Negative hours or rates raise ``ValidationError``.
* A missing or zero employee rate falls back to the configured default.
"""

from __future__ import annotations

from decimal import Decimal

from jobcost_kernel.domain.money import ZERO, require_non_negative
from jobcost_kernel.exceptions import ValidationError


def effective_hourly_rate(rate: Decimal | None, default: Decimal) -> Decimal:
    """
    Rate used to price logged hours.

    Preconditions:
        - ``default`` >= 0.
    Postconditions:
        - Returns ``rate`` when it is set and positive, else ``default``.
    Raises:
        ValidationError: If ``rate`` is negative.
    """
    if rate is None:
        return default
    rate = require_non_negative(rate, "hourly_rate")
    return rate if rate > ZERO else default


def labor_amount(hours: Decimal, rate: Decimal) -> Decimal:
    """
    ``hours * rate``, unrounded.

    Raises:
        ValidationError: If ``hours`` or ``rate`` is negative.
    """
    if hours < ZERO:
        raise ValidationError("hours_worked", hours, "must be zero or greater")
    if rate < ZERO:
        raise ValidationError("hourly_rate", rate, "must be zero or greater")
    return hours * rate


def labor_description(hours: Decimal, notes: str | None = None) -> str:
    """``Labor: 2.5 hours``, with the entry notes appended when present."""
    text = f"Labor: {hours.normalize():f} hours"
    if notes and notes.strip():
        text = f"{text} - {notes.strip()}"
    return text
