"""
Tests for structured job cost logging (jobcost_kernel/logging_config.py).

Validates:
- Service events come out as one JSON line with their figures
- job_scope binds project / entity fields to everything logged inside it
- JobCostError context is written under ``error``
- configure_logging installs a single handler
- LoggingNotifier maps notification levels onto log levels
"""

import json
import logging
import sys
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from jobcost_kernel.exceptions import PartialWriteError, StoreError, ValidationError
from jobcost_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    current_scope,
    get_logger,
    job_scope,
    reset_logging,
)
from jobcost_kernel.services.notifier import LoggingNotifier, Notification, NotificationLevel
from jobcost_modules.expense.models import EntityType


def _lines(stream: StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


def _events(captured_logs, name: str) -> list[dict]:
    return [r for r in captured_logs() if r["message"] == name]


# ---------------------------------------------------------------------------
# Service events
# ---------------------------------------------------------------------------


class TestServiceEvents:

    def test_expense_recorded_line(self, ledger, project_id, captured_logs):
        expense = ledger.record_expense(
            project_id, Decimal("312.40"), "Drywall delivery", expense_type="material",
        )

        [record] = _events(captured_logs, "expense_recorded")
        assert record["level"] == "INFO"
        assert record["logger"] == "jobcost_kernel.modules.expense.service"
        assert record["expense_id"] == str(expense.id)
        assert record["entity_type"] == "PROJECT"
        assert Decimal(record["amount"]) == Decimal("312.40")
        assert "ts" in record

    def test_time_entry_logged_line(self, timelog, employee_id, work_date, captured_logs):
        work_order_id = uuid4()
        logged = timelog.log_time(
            EntityType.WORK_ORDER, work_order_id, Decimal("6"), work_date, employee_id,
        )

        [record] = _events(captured_logs, "time_entry_logged")
        assert record["entity_id"] == str(work_order_id)
        assert record["labor_expense_id"] == str(logged.labor_expense.id)
        assert Decimal(record["employee_rate"]) == Decimal("40")

    def test_store_writes_inside_log_time_carry_entity(
        self, timelog, work_date, captured_logs,
    ):
        work_order_id = uuid4()
        timelog.log_time(EntityType.WORK_ORDER, work_order_id, Decimal("1"), work_date)

        inserts = _events(captured_logs, "store_row_inserted")
        assert {r["table"] for r in inserts} == {"time_entries", "expenses"}
        for record in inserts:
            assert record["entity_type"] == "WORK_ORDER"
            assert record["entity_id"] == str(work_order_id)

    def test_rollup_lines_carry_project(self, rollup, ledger, project_id, captured_logs):
        ledger.record_expense(project_id, Decimal("90"), "Permit fee")

        rollup.publish(project_id)

        [summarized] = _events(captured_logs, "budget_summarized")
        [published] = _events(captured_logs, "project_budget_published")
        assert summarized["project_id"] == str(project_id)
        assert summarized["expense_count"] == 1
        assert published["project_id"] == str(project_id)
        assert published["budget_status"] == "not_set"

    def test_scope_released_after_service_call(self, rollup, project_id):
        rollup.summarize(project_id)
        assert current_scope() == {}

    def test_partial_write_logged_with_error(
        self, legacy_timelog, store, work_date, monkeypatch, captured_logs,
    ):
        original_insert = store.insert

        def insert(table, row):
            if table == "expenses":
                raise StoreError("insert", table, "connection lost")
            return original_insert(table, row)

        monkeypatch.setattr(store, "insert", insert)
        work_order_id = uuid4()
        with pytest.raises(PartialWriteError):
            legacy_timelog.log_time(EntityType.WORK_ORDER, work_order_id, Decimal("3"), work_date)

        [record] = _events(captured_logs, "labor_expense_insert_failed")
        assert record["level"] == "ERROR"
        assert record["entity_id"] == str(work_order_id)
        assert record["error"]["code"] == "STORE_ERROR"
        assert record["error"]["table"] == "expenses"
        assert "traceback" in record


# ---------------------------------------------------------------------------
# job_scope
# ---------------------------------------------------------------------------


class TestJobScope:

    def test_nested_scope_inherits_and_restores(self):
        project_id = uuid4()
        with job_scope(project_id=project_id):
            with job_scope(entity_type="WORK_ORDER", entity_id="wo-7"):
                assert current_scope() == {
                    "project_id": str(project_id),
                    "entity_type": "WORK_ORDER",
                    "entity_id": "wo-7",
                }
            assert current_scope() == {"project_id": str(project_id)}
        assert current_scope() == {}

    def test_none_values_ignored(self):
        with job_scope(project_id="p-1"):
            with job_scope(project_id=None, entity_id="e-1"):
                assert current_scope()["project_id"] == "p-1"

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            with job_scope(vendor_id="v-1"):
                pass

    def test_restored_when_block_raises(self):
        with pytest.raises(ValidationError):
            with job_scope(project_id="p-1"):
                raise ValidationError("amount", Decimal("-1"), "must be zero or greater")
        assert current_scope() == {}


# ---------------------------------------------------------------------------
# Formatter and setup
# ---------------------------------------------------------------------------


class TestFormatter:

    def _format(self, record: logging.LogRecord) -> dict:
        return json.loads(StructuredFormatter().format(record))

    def test_validation_error_fields(self):
        try:
            raise ValidationError("base_cost", Decimal("-5"), "must be zero or greater")
        except ValidationError:
            record = logging.LogRecord(
                "jobcost_kernel.test", logging.ERROR, __file__, 1,
                "budget_item_rejected", (), sys.exc_info(),
            )

        payload = self._format(record)
        assert payload["error"]["type"] == "ValidationError"
        assert payload["error"]["code"] == "VALIDATION_ERROR"
        assert payload["error"]["field"] == "base_cost"
        assert payload["error"]["value"] == "-5"

    def test_extras_do_not_replace_envelope(self):
        record = logging.LogRecord(
            "jobcost_kernel.test", logging.INFO, __file__, 1, "budget_item_created", (), None,
        )
        record.level = "overridden"
        record.base_cost = Decimal("10.50")

        payload = self._format(record)
        assert payload["level"] == "INFO"
        assert payload["base_cost"] == "10.50"


class TestConfigureLogging:

    @pytest.fixture(autouse=True)
    def _restore_suite_logging(self):
        yield
        reset_logging()
        configure_logging(level=logging.DEBUG)

    def test_single_handler_when_called_twice(self):
        reset_logging()
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)

        get_logger("modules.budget.service").info("budget_item_created")

        assert len(_lines(first)) == 1
        assert second.getvalue() == ""

    def test_reset_removes_handler(self):
        reset_logging()
        assert logging.getLogger("jobcost_kernel").handlers == []


class TestLoggingNotifier:

    @pytest.mark.parametrize("level, expected", [
        (NotificationLevel.INFO, "INFO"),
        (NotificationLevel.WARNING, "WARNING"),
        (NotificationLevel.ERROR, "ERROR"),
    ])
    def test_levels(self, level, expected, captured_logs):
        LoggingNotifier().notify(Notification(
            title="Budget item deleted",
            description="2 expense(s) still reference this item",
            level=level,
            code="STORE_ERROR" if level is NotificationLevel.ERROR else None,
        ))

        [record] = _events(captured_logs, "user_notification")
        assert record["level"] == expected
        assert record["notification_level"] == level.value
        assert record["title"] == "Budget item deleted"
