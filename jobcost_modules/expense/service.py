"""
Expense Ledger (``jobcost_modules.expense.service``).

Responsibility
--------------
Records, edits, lists and deletes actual cost events.  The ledger is the
source of truth for a project's ``current_expenses``; budget line items
only reference it.

Invariants enforced
-------------------
* ``amount`` >= 0 and ``description`` non-empty, checked before any store
  call.
* ``entity_type`` is stored upper case.
* Deleting an expense never deletes its linked time entry.  The reverse
  direction (time entry delete cascades to expenses) lives in
  ``TimeEntryService``.

Failure modes
-------------
* ``ValidationError`` -- bad amount, description, or unknown field.
* ``RecordNotFoundError`` -- update/delete of a missing expense.
* ``StoreError`` -- propagated from the store.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from jobcost_kernel.db.store import DataStore
from jobcost_kernel.domain.clock import Clock, SystemClock
from jobcost_kernel.domain.money import ZERO, require_non_negative
from jobcost_kernel.exceptions import RecordNotFoundError, ValidationError
from jobcost_kernel.logging_config import get_logger
from jobcost_kernel.services.notifier import Notifier, NullNotifier
from jobcost_modules._row_helpers import parse_date, require_text
from jobcost_modules._service_helpers import notify_success, report_failures
from jobcost_modules.expense.models import EntityType, Expense, normalize_entity_type
from jobcost_modules.expense.orm import ExpenseModel

logger = get_logger("modules.expense.service")

EXPENSES = ExpenseModel.__tablename__

_UPDATABLE_FIELDS = frozenset({
    "entity_type",
    "entity_id",
    "budget_item_id",
    "vendor_id",
    "document_id",
    "expense_date",
    "amount",
    "description",
    "expense_type",
    "quantity",
    "unit_price",
    "is_billable",
    "notes",
})
_UUID_FIELDS = frozenset({"entity_id", "budget_item_id", "vendor_id", "document_id", "time_entry_id"})


def _clean_expense_fields(fields: dict[str, Any]) -> dict[str, Any]:
    clean: dict[str, Any] = {}
    for name, value in fields.items():
        if name in ("amount", "quantity", "unit_price"):
            clean[name] = require_non_negative(value, name)
        elif name == "description":
            clean[name] = require_text(value, name)
        elif name == "entity_type":
            clean[name] = normalize_entity_type(value)
        elif name == "expense_date":
            clean[name] = parse_date({name: value}, name)
        elif name == "expense_type":
            clean[name] = None if value is None else require_text(value, name).upper()
        elif name in _UUID_FIELDS:
            if value is not None and not isinstance(value, UUID):
                raise ValidationError(name, value, "must be a UUID")
            if name == "entity_id" and value is None:
                raise ValidationError(name, value, "is required")
            clean[name] = value
        elif name == "is_billable":
            clean[name] = bool(value)
        else:
            clean[name] = value
    return clean


class ExpenseLedger:
    """
    Manages expense records.

    Contract
    --------
    * Every read returns ``Expense`` parsed through ``from_row``.
    * Every failure is reported to the notifier, then re-raised.

    Non-goals
    ---------
    * Does NOT update budget line item ``actual_amount``
      (``BudgetItemService.refresh_actuals`` does, on demand).
    """

    def __init__(
        self,
        store: DataStore,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._notifier = notifier or NullNotifier()

    # =========================================================================
    # Writes
    # =========================================================================

    def record_expense(
        self,
        entity_id: UUID,
        amount: Decimal | int | str,
        description: str,
        expense_date: date | None = None,
        entity_type: str = EntityType.PROJECT,
        expense_type: str | None = None,
        budget_item_id: UUID | None = None,
        vendor_id: UUID | None = None,
        time_entry_id: UUID | None = None,
        document_id: UUID | None = None,
        quantity: Decimal | int | str | None = None,
        unit_price: Decimal | int | str | None = None,
        is_billable: bool = False,
        notes: str | None = None,
    ) -> Expense:
        """
        Validate and persist one expense.

        ``expense_date`` defaults to today; ``quantity`` to 1; ``unit_price``
        to ``amount``.
        """
        with report_failures(self._notifier, "Error saving expense"):
            expense = self._insert(_clean_expense_fields({
                "entity_type": entity_type,
                "entity_id": entity_id,
                "amount": amount,
                "description": description,
                "expense_date": expense_date or self._clock.today(),
                "expense_type": expense_type,
                "budget_item_id": budget_item_id,
                "vendor_id": vendor_id,
                "time_entry_id": time_entry_id,
                "document_id": document_id,
                "quantity": Decimal("1") if quantity is None else quantity,
                "unit_price": amount if unit_price is None else unit_price,
                "is_billable": is_billable,
                "notes": notes,
            }))
        notify_success(self._notifier, "Expense added", expense.description)
        return expense

    def update_expense(self, expense_id: UUID, **fields: Any) -> Expense:
        """Apply a partial update; ``time_entry_id`` cannot be changed here."""
        with report_failures(self._notifier, "Error updating expense"):
            unknown = sorted(set(fields) - _UPDATABLE_FIELDS)
            if unknown:
                raise ValidationError(unknown[0], fields[unknown[0]], "is not an editable expense field")
            values = _clean_expense_fields(fields)
            self._store.update(EXPENSES, expense_id, values)
            expense = self.get(expense_id)

        logger.info("expense_updated", extra={
            "expense_id": str(expense_id),
            "fields": sorted(values),
        })
        notify_success(self._notifier, "Expense updated", expense.description)
        return expense

    def delete_expense(self, expense_id: UUID) -> None:
        """Delete one expense.  A linked time entry is left in place."""
        with report_failures(self._notifier, "Error deleting expense"):
            existing = self.get(expense_id)
            self._store.delete(EXPENSES, expense_id)

        logger.info("expense_deleted", extra={
            "expense_id": str(expense_id),
            "amount": str(existing.amount),
            "time_entry_id": str(existing.time_entry_id) if existing.time_entry_id else None,
        })
        notify_success(self._notifier, "Expense deleted")

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, expense_id: UUID) -> Expense:
        row = self._store.get(EXPENSES, expense_id)
        if row is None:
            raise RecordNotFoundError(EXPENSES, expense_id)
        return Expense.from_row(row)

    def list_for_entity(self, entity_type: str, entity_id: UUID) -> list[Expense]:
        rows = self._store.select(
            EXPENSES,
            {"entity_type": normalize_entity_type(entity_type), "entity_id": entity_id},
            order_by=["-expense_date", "-created_at"],
        )
        return [Expense.from_row(row) for row in rows]

    def list_for_project(
        self,
        project_id: UUID,
        expense_type: str | None = None,
    ) -> list[Expense]:
        """
        Project expenses, newest first by ``expense_date``.

        ``expense_type`` filters by case-insensitive exact match.
        """
        expenses = self.list_for_entity(EntityType.PROJECT, project_id)
        if expense_type is None:
            return expenses
        wanted = expense_type.strip().upper()
        return [e for e in expenses if (e.expense_type or "").upper() == wanted]

    def list_for_time_entry(self, time_entry_id: UUID) -> list[Expense]:
        rows = self._store.select(EXPENSES, {"time_entry_id": time_entry_id})
        return [Expense.from_row(row) for row in rows]

    def totals_by_budget_item(self, project_id: UUID) -> dict[UUID | None, Decimal]:
        """Sum project expense amounts per ``budget_item_id`` (``None`` for unassigned)."""
        totals: dict[UUID | None, Decimal] = {}
        for expense in self.list_for_project(project_id):
            key = expense.budget_item_id
            totals[key] = totals.get(key, ZERO) + expense.amount
        return totals

    # =========================================================================
    # Internals
    # =========================================================================

    def _insert(self, values: dict[str, Any]) -> Expense:
        expense = Expense.from_row(self._store.insert(EXPENSES, values))
        logger.info("expense_recorded", extra={
            "expense_id": str(expense.id),
            "entity_type": expense.entity_type,
            "entity_id": str(expense.entity_id),
            "expense_type": expense.expense_type,
            "amount": str(expense.amount),
            "budget_item_id": str(expense.budget_item_id) if expense.budget_item_id else None,
        })
        return expense
