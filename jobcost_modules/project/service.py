"""
Budget Rollup Service (``jobcost_modules.project.service``).

Responsibility
--------------
Reads a project's active line items and its ledger expenses through the
data store and folds them with ``summarize_budget``.  ``publish`` writes the
denormalized summary fields back onto the project row;
``capture_baseline`` snapshots the approved selling price and contingency.

Architecture position
---------------------
**Modules layer** -- composes ``BudgetItemService`` and ``ExpenseLedger``
for reads; all arithmetic is delegated to the pure rollup.

Invariants enforced
-------------------
* Pull model: every call reads current committed state.  Nothing is
  cached between calls.
* ``current_expenses`` is always written from the ledger total, never from
  line item ``actual_amount``.

Failure modes
-------------
* ``RecordNotFoundError`` -- ``publish``/``capture_baseline``/``get_project``
  for a missing project.
* ``ValidationError`` -- a stored row fails ``from_row`` parsing.
"""

from __future__ import annotations

from uuid import UUID

from jobcost_config.schema import JobCostConfig
from jobcost_kernel.db.store import DataStore
from jobcost_kernel.domain.clock import Clock, SystemClock
from jobcost_kernel.domain.money import format_currency
from jobcost_kernel.exceptions import RecordNotFoundError
from jobcost_kernel.logging_config import get_logger, job_scope
from jobcost_kernel.services.notifier import Notifier, NullNotifier
from jobcost_modules._service_helpers import notify_success, report_failures
from jobcost_modules.budget.service import BudgetItemService
from jobcost_modules.expense.service import ExpenseLedger
from jobcost_modules.project.models import BudgetSummary, Project
from jobcost_modules.project.orm import ProjectModel
from jobcost_modules.project.rollup import summarize_budget

logger = get_logger("modules.project.service")

PROJECTS = ProjectModel.__tablename__


class BudgetRollupService:
    """
    Computes and publishes project budget summaries.

    Contract
    --------
    * ``summarize`` is read-only and works for a project with no line items
      and no expenses (all zeros, ``not_set``).
    * ``publish`` and ``capture_baseline`` return the summary they wrote.
    """

    def __init__(
        self,
        store: DataStore,
        config: JobCostConfig | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ):
        self._store = store
        self._config = config or JobCostConfig.with_defaults()
        self._clock = clock or SystemClock()
        self._notifier = notifier or NullNotifier()
        self._items = BudgetItemService(store, self._clock, self._notifier)
        self._ledger = ExpenseLedger(store, self._clock, self._notifier)

    def get_project(self, project_id: UUID) -> Project:
        row = self._store.get(PROJECTS, project_id)
        if row is None:
            raise RecordNotFoundError(PROJECTS, project_id)
        return Project.from_row(row)

    def summarize(self, project_id: UUID) -> BudgetSummary:
        """Fold the current active line items and project expenses."""
        with job_scope(project_id=project_id):
            items = self._items.list_for_project(project_id)
            expenses = self._ledger.list_for_project(project_id)
            summary = summarize_budget(
                project_id,
                items,
                expenses,
                self._config.status,
                self._config.usage_bands,
            )
            logger.debug("budget_summarized", extra={
                "line_item_count": summary.line_item_count,
                "expense_count": len(expenses),
                "total_budget": str(summary.total_budget),
                "total_actual": str(summary.total_actual),
                "status": summary.status.value,
            })
        return summary

    def publish(self, project_id: UUID) -> BudgetSummary:
        """Write ``total_budget``, ``current_expenses`` and ``budget_status``."""
        with job_scope(project_id=project_id), \
                report_failures(self._notifier, "Error updating project budget"):
            self.get_project(project_id)
            summary = self.summarize(project_id)
            self._store.update(PROJECTS, project_id, {
                "total_budget": summary.total_budget,
                "current_expenses": summary.total_actual,
                "budget_status": summary.status.value,
            })
            logger.info("project_budget_published", extra={
                "total_budget": str(summary.total_budget),
                "current_expenses": str(summary.total_actual),
                "budget_status": summary.status.value,
            })

        notify_success(
            self._notifier,
            "Project budget updated",
            f"{format_currency(summary.total_actual, self._config.currency)} of "
            f"{format_currency(summary.total_budget, self._config.currency)} used",
        )
        return summary

    def capture_baseline(self, project_id: UUID) -> BudgetSummary:
        """Record the current selling price and contingency as the original figures."""
        with job_scope(project_id=project_id), \
                report_failures(self._notifier, "Error saving budget baseline"):
            self.get_project(project_id)
            summary = self.summarize(project_id)
            self._store.update(PROJECTS, project_id, {
                "original_selling_price": summary.total_estimated_selling_price,
                "original_contingency_amount": summary.contingency_total,
            })
            logger.info("project_budget_baseline_captured", extra={
                "original_selling_price": str(summary.total_estimated_selling_price),
                "original_contingency_amount": str(summary.contingency_total),
            })
        notify_success(self._notifier, "Budget baseline saved")
        return summary
