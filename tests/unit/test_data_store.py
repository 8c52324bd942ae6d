"""
Tests for jobcost_kernel.db.store.DataStore.

Validates:
- insert returns the stored row with generated id and timestamps
- select filters (equality, IS NULL, IN) and ordering
- update/delete raise RecordNotFoundError for missing ids
- unknown tables and columns raise StoreError
- transaction() commits together or rolls back together
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from jobcost_kernel.db.store import DataStore
from jobcost_kernel.exceptions import RecordNotFoundError, StoreError


def _expense(project_id, amount, expense_date=date(2024, 3, 1), **extra):
    row = {
        "entity_type": "PROJECT",
        "entity_id": project_id,
        "amount": Decimal(amount),
        "description": f"Expense {amount}",
        "expense_date": expense_date,
    }
    row.update(extra)
    return row


class TestInsertAndGet:

    def test_insert_returns_stored_row(self, store):
        row = store.insert("projects", {"name": "Deck"})
        assert isinstance(row["id"], UUID)
        assert row["name"] == "Deck"
        assert row["budget_status"] == "not_set"
        assert row["created_at"] is not None

    def test_insert_keeps_supplied_id(self, store):
        pid = uuid4()
        row = store.insert("projects", {"id": pid, "name": "Deck"})
        assert row["id"] == pid

    def test_get_missing_returns_none(self, store):
        assert store.get("projects", uuid4()) is None

    def test_returned_rows_are_copies(self, store):
        row = store.insert("projects", {"name": "Deck"})
        row["name"] = "changed"
        assert store.get("projects", row["id"])["name"] == "Deck"

    def test_unknown_table(self, store):
        with pytest.raises(StoreError) as exc_info:
            store.insert("invoices", {"name": "x"})
        assert exc_info.value.table == "invoices"
        assert exc_info.value.code == "STORE_ERROR"

    def test_unknown_column(self, store):
        with pytest.raises(StoreError) as exc_info:
            store.insert("projects", {"name": "x", "colour": "red"})
        assert "colour" in exc_info.value.detail

    def test_constraint_violation_wrapped(self, store):
        with pytest.raises(StoreError) as exc_info:
            store.insert("projects", {"name": None})
        assert exc_info.value.operation == "insert"
        assert exc_info.value.__cause__ is not None


class TestSelect:

    def test_equality_and_null_filters(self, store, project_id):
        item_id = uuid4()
        store.insert("expenses", _expense(project_id, "10", budget_item_id=item_id))
        store.insert("expenses", _expense(project_id, "20"))

        assigned = store.select("expenses", {"budget_item_id": item_id})
        unassigned = store.select("expenses", {"budget_item_id": None})
        assert [r["amount"] for r in assigned] == [Decimal("10")]
        assert [r["amount"] for r in unassigned] == [Decimal("20")]

    def test_in_filter(self, store, project_id):
        store.insert("expenses", _expense(project_id, "1", expense_type="LABOR"))
        store.insert("expenses", _expense(project_id, "2", expense_type="MATERIAL"))
        store.insert("expenses", _expense(project_id, "3", expense_type="OTHER"))

        rows = store.select("expenses", {"expense_type": ["LABOR", "MATERIAL"]})
        assert sorted(r["amount"] for r in rows) == [Decimal("1"), Decimal("2")]

    def test_descending_order(self, store, project_id):
        store.insert("expenses", _expense(project_id, "1", date(2024, 1, 5)))
        store.insert("expenses", _expense(project_id, "2", date(2024, 3, 5)))
        store.insert("expenses", _expense(project_id, "3", date(2024, 2, 5)))

        rows = store.select("expenses", order_by=["-expense_date"])
        assert [r["expense_date"] for r in rows] == [
            date(2024, 3, 5), date(2024, 2, 5), date(2024, 1, 5),
        ]


class TestUpdateDelete:

    def test_update_applies_partial_values(self, store, project_id):
        store.update("projects", project_id, {"budget_status": "warning"})
        row = store.get("projects", project_id)
        assert row["budget_status"] == "warning"
        assert row["name"] == "Kitchen Remodel"

    def test_update_missing_row(self, store):
        missing = uuid4()
        with pytest.raises(RecordNotFoundError) as exc_info:
            store.update("projects", missing, {"name": "x"})
        assert exc_info.value.record_id == missing
        assert exc_info.value.code == "RECORD_NOT_FOUND"

    def test_empty_update_checks_existence(self, store, project_id):
        store.update("projects", project_id, {})
        with pytest.raises(RecordNotFoundError):
            store.update("projects", uuid4(), {})

    def test_delete(self, store, project_id):
        store.delete("projects", project_id)
        assert store.get("projects", project_id) is None

    def test_delete_missing_row(self, store):
        with pytest.raises(RecordNotFoundError):
            store.delete("projects", uuid4())


class TestTransaction:

    def test_commits_together(self, store, session, project_id):
        with store.transaction():
            store.insert("expenses", _expense(project_id, "5"))
            store.insert("expenses", _expense(project_id, "6"))
            assert store.in_transaction

        assert not store.in_transaction
        fresh = DataStore(session)
        assert len(fresh.select("expenses")) == 2

    def test_rolls_back_on_exception(self, store, project_id):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert("expenses", _expense(project_id, "5"))
                raise RuntimeError("abort")

        assert store.select("expenses") == []
        assert not store.in_transaction

    def test_nested_transaction_joins_outer(self, store, project_id):
        with pytest.raises(StoreError):
            with store.transaction():
                with store.transaction():
                    store.insert("expenses", _expense(project_id, "5"))
                store.insert("invoices", {})

        assert store.select("expenses") == []

    def test_rollback_logged(self, store, captured_logs):
        with pytest.raises(ValueError):
            with store.transaction():
                raise ValueError("x")
        assert any(r["message"] == "store_transaction_rolled_back" for r in captured_logs())
