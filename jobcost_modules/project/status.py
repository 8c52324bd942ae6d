"""
Budget Status Classification (``jobcost_modules.project.status``).

Pure threshold functions.  Two independent scales:

* ``classify_budget`` -- the stored ``budget_status`` (warning above 85 %,
  critical above 100 %, both exclusive).
* ``usage_band`` -- dashboard colouring on the rounded integer percentage
  (elevated above 75, over above 90).
"""

from __future__ import annotations

from decimal import Decimal

from jobcost_config.schema import StatusThresholds, UsageBandThresholds
from jobcost_kernel.domain.money import HUNDRED, ZERO, percentage, round_money
from jobcost_modules.project.models import BudgetStatus, BudgetSummary, UsageBand

_DEFAULT_STATUS = StatusThresholds()
_DEFAULT_BANDS = UsageBandThresholds()


def classify_budget(
    total_budget: Decimal,
    percent_used: Decimal,
    thresholds: StatusThresholds = _DEFAULT_STATUS,
) -> BudgetStatus:
    """
    Status for a budget and its unclamped percent used.

    Negative percentages (credits exceeding costs) are ``ON_TRACK``.
    """
    if total_budget <= ZERO:
        return BudgetStatus.NOT_SET
    if percent_used > thresholds.critical_percent:
        return BudgetStatus.CRITICAL
    if percent_used > thresholds.warning_percent:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


def classify(
    summary: BudgetSummary,
    thresholds: StatusThresholds = _DEFAULT_STATUS,
) -> BudgetStatus:
    return classify_budget(summary.total_budget, summary.percent_used, thresholds)


def rounded_percent(percent_used: Decimal) -> int:
    return int(round_money(percent_used, 0))


def display_percent(total_budget: Decimal, actual: Decimal) -> int:
    """Percent used for display: rounded half-up and clamped to [0, 100]."""
    value = rounded_percent(percentage(actual, total_budget))
    return max(0, min(int(HUNDRED), value))


def usage_band(
    percent_used: Decimal,
    thresholds: UsageBandThresholds = _DEFAULT_BANDS,
) -> UsageBand:
    value = rounded_percent(percent_used)
    if value > thresholds.over_percent:
        return UsageBand.OVER
    if value > thresholds.elevated_percent:
        return UsageBand.ELEVATED
    return UsageBand.NORMAL
