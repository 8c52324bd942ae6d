"""
Money -- Decimal arithmetic helpers for job costing.

Responsibility:
    Coercion of loosely typed amounts into ``Decimal``, the one sanctioned
    rounding function, safe percentages, and currency display formatting.

Invariants enforced:
    - No floats in results. Float inputs are converted through ``str()``
      so ``0.1`` becomes ``Decimal("0.1")``, not its binary expansion.
    - ``percentage`` never divides by zero; a zero or negative whole
      yields ``ZERO``.

Failure modes:
    - ``ValidationError`` when a value cannot be read as a number or a
      non-negative field is negative.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from jobcost_kernel.exceptions import ValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MONEY_DECIMAL_PLACES = 2
PERCENT_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "AUD": "$",
    "EUR": "€",
    "GBP": "£",
}


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a numeric value into ``Decimal``.

    Raises:
        ValidationError: If ``value`` is None, a bool, or not numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(field, value, "must be a number")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(field, value, "must be a number") from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValidationError(field, value, "must be a number")

    if not result.is_finite():
        raise ValidationError(field, value, "must be finite")
    return result


def require_non_negative(value: Any, field: str) -> Decimal:
    """Coerce ``value`` and reject anything below zero."""
    amount = to_decimal(value, field)
    if amount < ZERO:
        raise ValidationError(field, value, "must be zero or greater")
    return amount


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a value to ``decimal_places`` (half-up by default).

    This is the only rounding function the modules use, for amounts and
    percentages alike.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    return value.quantize(quantum, rounding=rounding)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """
    ``part / whole * 100`` unrounded, or ``ZERO`` when ``whole <= 0``.

    Postconditions:
        - Never raises on a zero denominator.
        - The result is not clamped; callers clamp for display.
    """
    if whole <= ZERO:
        return ZERO
    return part / whole * HUNDRED


def format_currency(
    amount: Decimal,
    currency: str = "USD",
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> str:
    """
    Format an amount for display, e.g. ``-$1,234.50``.

    Unknown currencies are rendered with the ISO code as a suffix.
    """
    rounded = round_money(amount, decimal_places)
    sign = "-" if rounded < ZERO else ""
    digits = f"{abs(rounded):,.{decimal_places}f}"
    symbol = _CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{sign}{digits} {currency.upper()}"
    return f"{sign}{symbol}{digits}"
