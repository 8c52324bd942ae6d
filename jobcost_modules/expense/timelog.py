"""
Time Entry Service (``jobcost_modules.expense.timelog``).

Responsibility
--------------
Logs hours against a project or work order and, for entity types
configured for labor costing, writes the matching LABOR expense so labor
shows up in the ledger.

Architecture position
---------------------
**Modules layer** -- uses ``DataStore.transaction()`` for the dual write
and the pure helpers in ``jobcost_modules.expense.helpers`` for pricing.

Invariants enforced
-------------------
* Atomic mode (default): the time entry and its LABOR expense commit
  together or not at all.
* Legacy mode (``labor.atomic_writes: false``): the time entry commits
  first; a failed expense insert raises ``PartialWriteError`` naming the
  committed time entry.
* ``labor expense amount == hours_worked * effective rate`` where the rate
  is the employee's ``hourly_rate`` or the configured default.
* Deleting a time entry deletes every expense linked to it, in one
  transaction.

Failure modes
-------------
* ``ValidationError`` -- negative hours, empty entity type, unknown
  employee.
* ``StoreError`` -- atomic mode write failed; nothing persisted.
* ``PartialWriteError`` -- legacy mode expense insert failed.
* ``RecordNotFoundError`` -- delete of a missing time entry.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from jobcost_config.schema import LaborConfig
from jobcost_kernel.db.store import DataStore
from jobcost_kernel.domain.clock import Clock, SystemClock
from jobcost_kernel.domain.money import ZERO, require_non_negative
from jobcost_kernel.exceptions import PartialWriteError, RecordNotFoundError, StoreError, ValidationError
from jobcost_kernel.logging_config import get_logger, job_scope
from jobcost_kernel.services.notifier import Notifier, NullNotifier
from jobcost_modules._service_helpers import notify_success, report_failures
from jobcost_modules.expense.helpers import effective_hourly_rate, labor_amount, labor_description
from jobcost_modules.expense.models import Employee, Expense, LoggedTime, TimeEntry, normalize_entity_type
from jobcost_modules.expense.orm import EmployeeModel, ExpenseModel, TimeEntryModel

logger = get_logger("modules.expense.timelog")

EMPLOYEES = EmployeeModel.__tablename__
EXPENSES = ExpenseModel.__tablename__
TIME_ENTRIES = TimeEntryModel.__tablename__


class TimeEntryService:
    """
    Logs and deletes time entries, keeping their LABOR expenses in step.

    Non-goals
    ---------
    * Does NOT re-price an existing LABOR expense when a time entry or an
      employee rate changes.
    """

    def __init__(
        self,
        store: DataStore,
        config: LaborConfig | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ):
        self._store = store
        self._config = config or LaborConfig()
        self._clock = clock or SystemClock()
        self._notifier = notifier or NullNotifier()

    def is_costed(self, entity_type: str) -> bool:
        """True when time logged on ``entity_type`` produces a LABOR expense."""
        return normalize_entity_type(entity_type) in self._config.costed_entity_types

    # =========================================================================
    # Writes
    # =========================================================================

    def log_time(
        self,
        entity_type: str,
        entity_id: UUID,
        hours_worked: Decimal | int | str,
        date_worked: date | None = None,
        employee_id: UUID | None = None,
        project_budget_item_id: UUID | None = None,
        notes: str | None = None,
    ) -> LoggedTime:
        """
        Insert a time entry and, when costed, its LABOR expense.

        Returns:
            ``LoggedTime`` with the stored entry and the expense (``None``
            when the entity type is not costed or hours are zero).
        """
        with report_failures(self._notifier, "Error adding time entry"):
            entity_type = normalize_entity_type(entity_type)
            hours = require_non_negative(hours_worked, "hours_worked")
            rate = effective_hourly_rate(
                self._employee_rate(employee_id), self._config.default_hourly_rate
            )
            worked_on = date_worked or self._clock.today()

            entry_values = {
                "entity_type": entity_type,
                "entity_id": entity_id,
                "employee_id": employee_id,
                "date_worked": worked_on,
                "hours_worked": hours,
                "employee_rate": rate,
                "total_cost": labor_amount(hours, rate),
                "project_budget_item_id": project_budget_item_id,
                "notes": notes,
            }
            with_expense = hours > ZERO and entity_type in self._config.costed_entity_types

            with job_scope(entity_type=entity_type, entity_id=entity_id):
                entry, expense = self._write_entry(entry_values, with_expense)

        logger.info("time_entry_logged", extra={
            "time_entry_id": str(entry.id),
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "hours_worked": str(hours),
            "employee_rate": str(rate),
            "labor_expense_id": str(expense.id) if expense else None,
        })
        notify_success(
            self._notifier,
            "Time entry added",
            f"{hours.normalize():f} hours have been logged successfully.",
        )
        return LoggedTime(time_entry=entry, labor_expense=expense)

    def delete_time_entry(self, time_entry_id: UUID) -> int:
        """
        Delete a time entry and every expense linked to it.

        Returns:
            Number of expenses removed.
        """
        with report_failures(self._notifier, "Error deleting time entry"):
            if self._store.get(TIME_ENTRIES, time_entry_id) is None:
                raise RecordNotFoundError(TIME_ENTRIES, time_entry_id, "delete")
            with self._store.transaction():
                linked = self._store.select(EXPENSES, {"time_entry_id": time_entry_id})
                for row in linked:
                    self._store.delete(EXPENSES, row["id"])
                self._store.delete(TIME_ENTRIES, time_entry_id)

        logger.info("time_entry_deleted", extra={
            "time_entry_id": str(time_entry_id),
            "expenses_deleted": len(linked),
        })
        notify_success(self._notifier, "Time entry deleted")
        return len(linked)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, time_entry_id: UUID) -> TimeEntry:
        row = self._store.get(TIME_ENTRIES, time_entry_id)
        if row is None:
            raise RecordNotFoundError(TIME_ENTRIES, time_entry_id)
        return TimeEntry.from_row(row)

    def list_for_entity(self, entity_type: str, entity_id: UUID) -> list[TimeEntry]:
        rows = self._store.select(
            TIME_ENTRIES,
            {"entity_type": normalize_entity_type(entity_type), "entity_id": entity_id},
            order_by=["-date_worked"],
        )
        return [TimeEntry.from_row(row) for row in rows]

    # =========================================================================
    # Internals
    # =========================================================================

    def _employee_rate(self, employee_id: UUID | None) -> Decimal | None:
        if employee_id is None:
            return None
        row = self._store.get(EMPLOYEES, employee_id)
        if row is None:
            raise ValidationError("employee_id", employee_id, "unknown employee")
        return Employee.from_row(row).hourly_rate

    def _write_entry(
        self, entry_values: dict[str, Any], with_expense: bool,
    ) -> tuple[TimeEntry, Expense | None]:
        if self._config.atomic_writes:
            with self._store.transaction():
                entry = TimeEntry.from_row(self._store.insert(TIME_ENTRIES, entry_values))
                expense = self._insert_labor_expense(entry) if with_expense else None
            return entry, expense

        entry = TimeEntry.from_row(self._store.insert(TIME_ENTRIES, entry_values))
        if not with_expense:
            return entry, None
        try:
            return entry, self._insert_labor_expense(entry)
        except StoreError as exc:
            logger.error("labor_expense_insert_failed", exc_info=True, extra={
                "time_entry_id": str(entry.id),
            })
            raise PartialWriteError(TIME_ENTRIES, entry.id, EXPENSES, str(exc)) from exc

    def _insert_labor_expense(self, entry: TimeEntry) -> Expense:
        values: dict[str, Any] = {
            "entity_type": entry.entity_type,
            "entity_id": entry.entity_id,
            "time_entry_id": entry.id,
            "budget_item_id": entry.project_budget_item_id,
            "expense_date": entry.date_worked,
            "expense_type": self._config.expense_type.upper(),
            "description": labor_description(entry.hours_worked, entry.notes),
            "amount": entry.total_cost,
            "quantity": entry.hours_worked,
            "unit_price": entry.employee_rate,
        }
        return Expense.from_row(self._store.insert(EXPENSES, values))
