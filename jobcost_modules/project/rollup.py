"""
Budget Rollup (``jobcost_modules.project.rollup``).

Responsibility
--------------
Folds a project's line items and ledger expenses into a ``BudgetSummary``.
Pure: the caller fetches the rows, this module only does arithmetic.

Rules
-----
* Inactive line items are ignored.
* ``total_budget`` is the sum of active line item estimated costs.
* ``total_actual`` is the sum of every project expense, attributed or not.
* An expense whose ``budget_item_id`` is null or does not match an active
  line item counts toward ``uncategorized_total``.  It never raises.
* Contingency: ``contingency_used`` is the part of ``total_actual`` that
  exceeds the non-contingency budget; ``contingency_remaining`` may go
  negative.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from jobcost_config.schema import StatusThresholds, UsageBandThresholds
from jobcost_kernel.domain.money import PERCENT_DECIMAL_PLACES, ZERO, percentage, round_money
from jobcost_modules.budget.calculations import compute_derived
from jobcost_modules.budget.models import BudgetLineItem
from jobcost_modules.expense.models import Expense
from jobcost_modules.project.models import BudgetSummary, LineItemVariance
from jobcost_modules.project.status import classify_budget, display_percent, usage_band


def summarize_budget(
    project_id: UUID,
    items: Iterable[BudgetLineItem],
    expenses: Iterable[Expense],
    thresholds: StatusThresholds | None = None,
    band_thresholds: UsageBandThresholds | None = None,
) -> BudgetSummary:
    """
    Build the budget summary for one project.

    Postconditions:
        - ``variance == total_budget - total_actual`` (never clamped).
        - ``remaining == max(variance, 0)``.
        - ``percent_used`` is unclamped and unrounded; 0 when the budget is 0.
    """
    thresholds = thresholds or StatusThresholds()
    band_thresholds = band_thresholds or UsageBandThresholds()

    active = [item for item in items if item.is_active]
    expense_list = list(expenses)

    ledger_by_item: dict[UUID | None, Decimal] = {}
    for expense in expense_list:
        key = expense.budget_item_id
        ledger_by_item[key] = ledger_by_item.get(key, ZERO) + expense.amount

    total_cost = ZERO
    total_selling = ZERO
    line_item_actual = ZERO
    line_item_variance = ZERO
    contingency = ZERO
    lines: list[LineItemVariance] = []
    for item in active:
        derived = compute_derived(item)
        total_cost += derived.estimated_cost
        total_selling += derived.estimated_selling_price
        line_item_actual += item.actual_amount
        line_item_variance += derived.variance
        if item.is_contingency:
            contingency += derived.estimated_cost
        lines.append(LineItemVariance(
            budget_item_id=item.id,
            category=item.category,
            description=item.description,
            estimated_cost=derived.estimated_cost,
            estimated_selling_price=derived.estimated_selling_price,
            actual_amount=item.actual_amount,
            ledger_actual=ledger_by_item.get(item.id, ZERO),
            variance=derived.variance,
            is_contingency=item.is_contingency,
        ))

    active_ids = {item.id for item in active}
    total_actual = sum((e.amount for e in expense_list), ZERO)
    uncategorized = sum(
        (e.amount for e in expense_list if e.budget_item_id not in active_ids),
        ZERO,
    )

    margin = total_selling - total_cost
    variance = total_cost - total_actual
    percent_used = percentage(total_actual, total_cost)
    contingency_used = max(ZERO, total_actual - (total_cost - contingency))

    return BudgetSummary(
        project_id=project_id,
        total_estimated_cost=total_cost,
        total_estimated_selling_price=total_selling,
        total_gross_margin_amount=margin,
        gross_margin_percentage=round_money(
            percentage(margin, total_selling), PERCENT_DECIMAL_PLACES
        ),
        total_budget=total_cost,
        total_actual=total_actual,
        line_item_actual_total=line_item_actual,
        line_item_variance_total=line_item_variance,
        variance=variance,
        percent_used=percent_used,
        display_percent_used=display_percent(total_cost, total_actual),
        remaining=max(variance, ZERO),
        uncategorized_total=uncategorized,
        contingency_total=contingency,
        contingency_used=contingency_used,
        contingency_remaining=contingency - contingency_used,
        status=classify_budget(total_cost, percent_used, thresholds),
        usage_band=usage_band(percent_used, band_thresholds),
        line_items=tuple(lines),
    )
