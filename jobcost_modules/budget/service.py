"""
Budget Line Item Service (``jobcost_modules.budget.service``).

Responsibility
--------------
CRUD for budget line items through the data store, with boundary
validation, soft delete, hard purge with expense reassignment, and the
ledger-driven refresh of ``actual_amount``.

Invariants enforced
-------------------
* Category and description are non-empty; quantity and all currency
  fields are ``>= 0``.  Violations raise ``ValidationError`` before any
  store call.
* ``update`` never recomputes ``actual_amount``; only an explicit value or
  ``refresh_actuals`` changes it.
* ``delete`` leaves expenses untouched.  The line item row stays (inactive)
  so ``expenses.budget_item_id`` keeps pointing at a real row.
* ``purge`` reassigns or nulls dependent expenses and time entries in the
  same transaction as the row delete.

Failure modes
-------------
* ``ValidationError`` -- bad field value or unknown field name.
* ``RecordNotFoundError`` -- id missing, or the item is already deleted.
* ``StoreError`` -- the store failed; propagated unchanged.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from jobcost_kernel.db.store import DataStore
from jobcost_kernel.domain.clock import Clock, SystemClock
from jobcost_kernel.domain.money import ZERO, require_non_negative, to_decimal
from jobcost_kernel.exceptions import RecordNotFoundError, ValidationError
from jobcost_kernel.logging_config import get_logger
from jobcost_kernel.services.notifier import Notification, NotificationLevel, Notifier, NullNotifier
from jobcost_modules._row_helpers import require_text
from jobcost_modules._service_helpers import notify_success, report_failures
from jobcost_modules.budget.models import BudgetLineItem
from jobcost_modules.budget.orm import BudgetItemModel
from jobcost_modules.expense.models import EntityType
from jobcost_modules.expense.orm import ExpenseModel, TimeEntryModel

logger = get_logger("modules.budget.service")

BUDGET_ITEMS = BudgetItemModel.__tablename__
EXPENSES = ExpenseModel.__tablename__
TIME_ENTRIES = TimeEntryModel.__tablename__

_TEXT_FIELDS = ("category", "description")
_AMOUNT_FIELDS = (
    "quantity",
    "base_cost",
    "selling_unit_price",
    "selling_total_price",
    "markup_percentage",
    "actual_amount",
)
_NULLABLE_AMOUNTS = frozenset({"selling_unit_price", "selling_total_price", "markup_percentage"})
_REFERENCE_FIELDS = ("vendor_id", "subcontractor_id", "document_id")
_FLAG_FIELDS = ("is_contingency",)
EDITABLE_FIELDS = frozenset(_TEXT_FIELDS + _AMOUNT_FIELDS + _REFERENCE_FIELDS + _FLAG_FIELDS)


def validate_item_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Validate and normalise a set of line item fields.

    Returns a new dict ready for the store.  Raises ``ValidationError`` on
    the first bad or unknown field.
    """
    clean: dict[str, Any] = {}
    for name, value in fields.items():
        if name not in EDITABLE_FIELDS:
            raise ValidationError(name, value, "is not an editable budget item field")
        if name in _TEXT_FIELDS:
            clean[name] = require_text(value, name)
        elif name in _AMOUNT_FIELDS:
            if value is None:
                if name not in _NULLABLE_AMOUNTS:
                    raise ValidationError(name, value, "cannot be empty")
                clean[name] = None
            else:
                clean[name] = require_non_negative(value, name)
        elif name in _REFERENCE_FIELDS:
            if value is not None and not isinstance(value, UUID):
                raise ValidationError(name, value, "must be a UUID")
            clean[name] = value
        else:
            if not isinstance(value, bool):
                raise ValidationError(name, value, "must be true or false")
            clean[name] = value
    return clean


class BudgetItemService:
    """
    Manages budget line items for projects.

    Contract
    --------
    * Every read returns ``BudgetLineItem`` parsed through ``from_row``.
    * Every failure is reported to the notifier, then re-raised.

    Non-goals
    ---------
    * Does NOT compute project totals (``BudgetRollupService`` does).
    * Does NOT lock rows; concurrent edits are last-write-wins.
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
    # Reads
    # =========================================================================

    def get(self, item_id: UUID) -> BudgetLineItem:
        row = self._store.get(BUDGET_ITEMS, item_id)
        if row is None:
            raise RecordNotFoundError(BUDGET_ITEMS, item_id)
        return BudgetLineItem.from_row(row)

    def list_for_project(
        self,
        project_id: UUID,
        include_inactive: bool = False,
    ) -> list[BudgetLineItem]:
        filters: dict[str, Any] = {"project_id": project_id}
        if not include_inactive:
            filters["is_active"] = True
        rows = self._store.select(BUDGET_ITEMS, filters, order_by=["category", "created_at"])
        return [BudgetLineItem.from_row(row) for row in rows]

    # =========================================================================
    # Writes
    # =========================================================================

    def create(
        self,
        project_id: UUID,
        category: str,
        description: str,
        quantity: Decimal | int | str | None = None,
        base_cost: Decimal | int | str = ZERO,
        **fields: Any,
    ) -> BudgetLineItem:
        """Validate and persist a new line item."""
        with report_failures(self._notifier, "Error saving budget item"):
            values = validate_item_fields({
                "category": category,
                "description": description,
                "quantity": Decimal("1") if quantity is None else quantity,
                "base_cost": base_cost,
                **fields,
            })
            values.setdefault("actual_amount", ZERO)
            values["project_id"] = project_id
            values["is_active"] = True

            item = BudgetLineItem.from_row(self._store.insert(BUDGET_ITEMS, values))

        logger.info("budget_item_created", extra={
            "project_id": str(project_id),
            "budget_item_id": str(item.id),
            "category": item.category,
            "base_cost": str(item.base_cost),
            "quantity": str(item.quantity),
        })
        notify_success(self._notifier, "Budget item added", item.category)
        return item

    def update(self, item_id: UUID, **fields: Any) -> BudgetLineItem:
        """Apply a partial update.  ``actual_amount`` is only changed when passed."""
        with report_failures(self._notifier, "Error updating budget item"):
            values = validate_item_fields(fields)
            self._require_active(item_id, "update")
            self._store.update(BUDGET_ITEMS, item_id, values)
            item = self.get(item_id)

        logger.info("budget_item_updated", extra={
            "budget_item_id": str(item_id),
            "fields": sorted(values),
        })
        notify_success(self._notifier, "Budget item updated", item.category)
        return item

    def delete(self, item_id: UUID) -> None:
        """
        Remove a line item from listings and rollups.

        The row is kept inactive; expenses that reference it are not touched.
        """
        with report_failures(self._notifier, "Error deleting budget item"):
            self._require_active(item_id, "delete")
            self._store.update(BUDGET_ITEMS, item_id, {
                "is_active": False,
                "deleted_at": self._clock.now(),
            })
            linked = self._store.select(EXPENSES, {"budget_item_id": item_id})

        logger.info("budget_item_deleted", extra={
            "budget_item_id": str(item_id),
            "linked_expense_count": len(linked),
        })
        if linked:
            self._notifier.notify(Notification(
                title="Budget item deleted",
                description=(
                    f"{len(linked)} expense(s) still reference this item and "
                    "may need to be reallocated."
                ),
                level=NotificationLevel.WARNING,
            ))
        else:
            notify_success(self._notifier, "Budget item deleted")

    def purge(self, item_id: UUID, reassign_to: UUID | None = None) -> int:
        """
        Hard-delete a line item.

        Expenses and time entries that reference it move to ``reassign_to``
        (an active item on the same project) or have the reference nulled.
        Returns the number of expenses moved.
        """
        with report_failures(self._notifier, "Error deleting budget item"):
            item = self.get(item_id)
            if reassign_to is not None:
                if reassign_to == item_id:
                    raise ValidationError("reassign_to", reassign_to, "cannot be the purged item")
                target = self._require_active(reassign_to, "purge")
                if target.project_id != item.project_id:
                    raise ValidationError(
                        "reassign_to", reassign_to, "belongs to a different project"
                    )

            with self._store.transaction():
                expenses = self._store.select(EXPENSES, {"budget_item_id": item_id})
                for row in expenses:
                    self._store.update(EXPENSES, row["id"], {"budget_item_id": reassign_to})
                for row in self._store.select(TIME_ENTRIES, {"project_budget_item_id": item_id}):
                    self._store.update(
                        TIME_ENTRIES, row["id"], {"project_budget_item_id": reassign_to}
                    )
                self._store.delete(BUDGET_ITEMS, item_id)

        logger.info("budget_item_purged", extra={
            "budget_item_id": str(item_id),
            "reassigned_to": str(reassign_to) if reassign_to else None,
            "expense_count": len(expenses),
        })
        notify_success(self._notifier, "Budget item deleted")
        return len(expenses)

    def refresh_actuals(self, item_id: UUID) -> BudgetLineItem:
        """
        Set ``actual_amount`` to the item's ledger actual.

        Counts the same expenses the project rollup does: PROJECT expenses
        of the item's own project that reference the item.  Work order
        expenses tagged with the item are left out.
        """
        with report_failures(self._notifier, "Error refreshing budget item actuals"):
            item = self._require_active(item_id, "refresh_actuals")
            rows = self._store.select(EXPENSES, {
                "budget_item_id": item_id,
                "entity_type": EntityType.PROJECT,
                "entity_id": item.project_id,
            })
            total = sum((to_decimal(row["amount"]) for row in rows), ZERO)
            self._store.update(BUDGET_ITEMS, item_id, {"actual_amount": total})
            item = self.get(item_id)

        logger.info("budget_item_actuals_refreshed", extra={
            "budget_item_id": str(item_id),
            "actual_amount": str(total),
            "expense_count": len(rows),
        })
        return item

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_active(self, item_id: UUID, operation: str) -> BudgetLineItem:
        row = self._store.get(BUDGET_ITEMS, item_id)
        if row is None or not row.get("is_active", True):
            raise RecordNotFoundError(BUDGET_ITEMS, item_id, operation)
        return BudgetLineItem.from_row(row)
