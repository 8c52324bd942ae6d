"""
Project Budget Rollup (``jobcost_modules.project``).

Responsibility
--------------
The project record, the ``BudgetSummary`` rollup over line items and
ledger expenses, budget status classification, and publishing the
denormalized summary fields onto the project row.

Architecture position
---------------------
**Modules layer** -- top of the module stack; reads through
``jobcost_modules.budget`` and ``jobcost_modules.expense``.
"""

from jobcost_modules.project.models import (
    BudgetStatus,
    BudgetSummary,
    LineItemVariance,
    Project,
    UsageBand,
)
from jobcost_modules.project.rollup import summarize_budget
from jobcost_modules.project.service import BudgetRollupService
from jobcost_modules.project.status import classify, classify_budget, display_percent, usage_band

__all__ = [
    "BudgetRollupService",
    "BudgetStatus",
    "BudgetSummary",
    "LineItemVariance",
    "Project",
    "UsageBand",
    "classify",
    "classify_budget",
    "display_percent",
    "summarize_budget",
    "usage_band",
]
