"""
Budget Calculations (``jobcost_modules.budget.calculations``).

Responsibility
--------------
Pure derived-field arithmetic for a single budget line item.  No I/O, no
store, no clock.

Rules
-----
* ``quantity`` of ``None`` counts as 1; an explicit 0 stays 0.
* ``estimated_cost = quantity * base_cost``.
* ``estimated_selling_price`` prefers a stored ``selling_total_price``
  (lump-sum entry) over ``quantity * unit price``.  The unit price is the
  stored ``selling_unit_price``, else ``base_cost`` marked up by a stored
  ``markup_percentage``, else 0.
* ``gross_margin_percentage`` is 0 when the selling price is 0, never a
  division error.
* ``variance = estimated_cost - actual_amount``; negative means over budget
  and is never clamped.
"""

from __future__ import annotations

from decimal import Decimal

from jobcost_kernel.domain.money import HUNDRED, PERCENT_DECIMAL_PLACES, ZERO, percentage, round_money
from jobcost_modules.budget.models import BudgetLineItem, DerivedFields

ONE = Decimal("1")


def effective_quantity(item: BudgetLineItem) -> Decimal:
    return ONE if item.quantity is None else item.quantity


def effective_selling_unit_price(item: BudgetLineItem) -> Decimal:
    """Stored unit price, else marked-up base cost, else 0."""
    if item.selling_unit_price is not None:
        return item.selling_unit_price
    if item.markup_percentage is not None and item.base_cost is not None:
        return item.base_cost * (ONE + item.markup_percentage / HUNDRED)
    return ZERO


def compute_derived(item: BudgetLineItem) -> DerivedFields:
    """
    Compute planning totals for one line item.

    Postconditions:
        - ``gross_margin_amount == estimated_selling_price - estimated_cost``
        - percentages are rounded to 2 places, amounts are not rounded.
    """
    quantity = effective_quantity(item)
    estimated_cost = quantity * (item.base_cost or ZERO)

    if item.selling_total_price is not None:
        estimated_selling_price = item.selling_total_price
    else:
        estimated_selling_price = quantity * effective_selling_unit_price(item)

    margin = estimated_selling_price - estimated_cost
    margin_pct = round_money(percentage(margin, estimated_selling_price), PERCENT_DECIMAL_PLACES)

    if item.markup_percentage is not None:
        markup_pct = item.markup_percentage
    else:
        markup_pct = round_money(percentage(margin, estimated_cost), PERCENT_DECIMAL_PLACES)

    return DerivedFields(
        estimated_cost=estimated_cost,
        estimated_selling_price=estimated_selling_price,
        gross_margin_amount=margin,
        gross_margin_percentage=margin_pct,
        markup_percentage=markup_pct,
        variance=estimated_cost - item.actual_amount,
    )
