"""
Typed Exception Hierarchy for the Job Cost Kernel.

Every error raised by the kernel or the modules is a ``JobCostError``
subclass carrying:
  1. a ``code`` class attribute (machine-readable, API-safe)
  2. structured attributes describing the failure (never parse messages)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    JobCostError (base)
    |
    +-- ValidationError          field failed its invariant; nothing persisted
    |
    +-- StoreError               data store rejected or failed a read/write
    |   +-- RecordNotFoundError  update/delete/get of a missing row
    |
    +-- PartialWriteError        multi-step write left the first step committed
    |
    +-- ConfigurationError       configuration file missing or invalid

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                 | When Raised
---------------------|---------------------------------------------------------
VALIDATION_ERROR     | Negative amount, empty required string, unknown field
STORE_ERROR          | Network failure, constraint violation, driver error
RECORD_NOT_FOUND     | No row with the given id in the given table
PARTIAL_WRITE        | Time entry committed but its labor expense failed
CONFIGURATION_ERROR  | Threshold/rate out of range, unreadable YAML

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        ledger.record_expense(...)
    except ValidationError as e:
        reprompt(field=e.field, reason=e.reason)
    except StoreError as e:
        show_error(code=e.code, table=e.table)

    try:
        timelog.log_time(...)
    except PartialWriteError as e:
        # Recoverable: the time entry exists, its labor expense does not.
        queue_cleanup(e.committed_table, e.committed_id)
"""

from typing import Any


class JobCostError(Exception):
    """
    Base exception for all job cost errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "JOBCOST_ERROR"


class ValidationError(JobCostError):
    """A field fails its invariant before any store call is made."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason} (got {value!r})")


class StoreError(JobCostError):
    """The external data store rejected or failed a read or write."""

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, table: str, detail: str = ""):
        self.operation = operation
        self.table = table
        self.detail = detail
        message = f"Store {operation} on {table} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RecordNotFoundError(StoreError):
    """No row with the given id exists in the table."""

    code: str = "RECORD_NOT_FOUND"

    def __init__(self, table: str, record_id: Any, operation: str = "get"):
        self.record_id = record_id
        super().__init__(operation, table, f"no row with id {record_id}")


class PartialWriteError(JobCostError):
    """
    A multi-step write committed its first step and failed a later one.

    Recoverable inconsistency: the committed row stays in place and needs
    manual cleanup or a retry of the failed step.
    """

    code: str = "PARTIAL_WRITE"

    def __init__(
        self,
        committed_table: str,
        committed_id: Any,
        failed_table: str,
        detail: str = "",
    ):
        self.committed_table = committed_table
        self.committed_id = committed_id
        self.failed_table = failed_table
        self.detail = detail
        super().__init__(
            f"Wrote {committed_table} {committed_id} but insert into "
            f"{failed_table} failed" + (f": {detail}" if detail else "")
        )


class ConfigurationError(JobCostError):
    """Configuration is missing or holds an invalid value."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration {key}: {reason}")
