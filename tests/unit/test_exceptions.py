"""Tests for the typed exception hierarchy."""

from uuid import uuid4

import pytest

from jobcost_kernel.exceptions import (
    ConfigurationError,
    JobCostError,
    PartialWriteError,
    RecordNotFoundError,
    StoreError,
    ValidationError,
)


class TestErrorCodes:

    @pytest.mark.parametrize("exc, code", [
        (ValidationError("amount", -1, "must be zero or greater"), "VALIDATION_ERROR"),
        (StoreError("insert", "expenses"), "STORE_ERROR"),
        (RecordNotFoundError("expenses", uuid4()), "RECORD_NOT_FOUND"),
        (PartialWriteError("time_entries", uuid4(), "expenses"), "PARTIAL_WRITE"),
        (ConfigurationError("currency", "not an ISO 4217 code"), "CONFIGURATION_ERROR"),
    ])
    def test_code_and_base_class(self, exc, code):
        assert exc.code == code
        assert isinstance(exc, JobCostError)

    def test_record_not_found_is_store_error(self):
        exc = RecordNotFoundError("project_budget_items", "abc", "update")
        assert isinstance(exc, StoreError)
        assert exc.operation == "update"
        assert exc.table == "project_budget_items"
        assert "abc" in str(exc)


class TestMessages:

    def test_validation_message_names_field(self):
        exc = ValidationError("description", "", "must be a non-empty string")
        assert str(exc) == "Invalid description: must be a non-empty string (got '')"

    def test_store_error_detail_optional(self):
        assert str(StoreError("select", "expenses")) == "Store select on expenses failed"
        assert str(StoreError("select", "expenses", "timeout")).endswith(": timeout")

    def test_partial_write_names_both_tables(self):
        entry_id = uuid4()
        exc = PartialWriteError("time_entries", entry_id, "expenses", "constraint")
        assert exc.committed_id == entry_id
        assert "time_entries" in str(exc)
        assert "expenses" in str(exc)
