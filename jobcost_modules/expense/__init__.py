"""
Expense Ledger Module (``jobcost_modules.expense``).

Responsibility
--------------
Actual costs: the expense ledger, time entries, and the labor dual write
that turns logged hours into LABOR expenses.

Architecture position
---------------------
**Modules layer** -- depends on ``jobcost_kernel`` and ``jobcost_config``
only.  Consumed by ``jobcost_modules.project`` for the rollup.
"""

from jobcost_modules.expense.helpers import effective_hourly_rate, labor_amount, labor_description
from jobcost_modules.expense.models import (
    Employee,
    EntityType,
    Expense,
    ExpenseType,
    LoggedTime,
    TimeEntry,
)
from jobcost_modules.expense.service import ExpenseLedger
from jobcost_modules.expense.timelog import TimeEntryService

__all__ = [
    "Employee",
    "EntityType",
    "Expense",
    "ExpenseLedger",
    "ExpenseType",
    "LoggedTime",
    "TimeEntry",
    "TimeEntryService",
    "effective_hourly_rate",
    "labor_amount",
    "labor_description",
]
