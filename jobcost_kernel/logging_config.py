"""
Structured JSON logging for the job cost services.

Services log a snake_case event name and put the figures in ``extra``::

    logger.info("expense_recorded", extra={"expense_id": ..., "amount": ...})

``StructuredFormatter`` writes each record as one JSON line.  Money values
are written as strings so no precision is lost to floats.

``job_scope`` binds the project or work order being costed for the
duration of a block.  Every line logged inside it, including the data store
and ledger lines a rollup triggers, carries the bound ``project_id``,
``entity_type`` and ``entity_id``.
"""

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

__all__ = [
    "SCOPE_FIELDS",
    "StructuredFormatter",
    "job_scope",
    "current_scope",
    "clear_scope",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

LOGGER_ROOT = "jobcost_kernel"

SCOPE_FIELDS = ("project_id", "entity_type", "entity_id")

_scope: ContextVar[Mapping[str, str]] = ContextVar("jobcost_log_scope", default={})


# ---------------------------------------------------------------------------
# Job scope
# ---------------------------------------------------------------------------


@contextmanager
def job_scope(**fields: Any) -> Iterator[Mapping[str, str]]:
    """
    Bind job fields to every log line written inside the block.

    Nested scopes inherit the outer fields; ``None`` values are ignored so
    callers can pass optional ids straight through.
    """
    unknown = set(fields) - set(SCOPE_FIELDS)
    if unknown:
        raise TypeError(f"Unknown log scope field(s): {', '.join(sorted(unknown))}")

    merged = dict(_scope.get())
    merged.update({k: str(v) for k, v in fields.items() if v is not None})
    token = _scope.set(merged)
    try:
        yield merged
    finally:
        _scope.reset(token)


def current_scope() -> dict[str, str]:
    return dict(_scope.get())


def clear_scope() -> None:
    _scope.set({})


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_value(value: Any) -> Any:
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _error_fields(exc: BaseException) -> dict[str, Any]:
    # JobCostError subclasses carry their context as public attributes.
    fields: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["code"] = code
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            fields.setdefault(key, value)
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, job scope, extras, error."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_scope.get())

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload["error"] = _error_fields(record.exc_info[1])
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_value)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``jobcost_kernel`` hierarchy, e.g. ``modules.expense.service``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


def _is_installed(handler: logging.Handler) -> bool:
    return getattr(handler, "_jobcost_structured", False)


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install the JSON handler on the ``jobcost_kernel`` logger.

    Safe to call more than once: the engine calls it on start-up and an
    application may already have configured logging itself.
    """
    root = logging.getLogger(LOGGER_ROOT)
    if any(_is_installed(h) for h in root.handlers):
        return

    installed = handler or logging.StreamHandler(stream or sys.stderr)
    installed.setFormatter(StructuredFormatter())
    installed._jobcost_structured = True  # type: ignore[attr-defined]
    root.addHandler(installed)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Remove the installed handler. Used by the test suite."""
    root = logging.getLogger(LOGGER_ROOT)
    for handler in [h for h in root.handlers if _is_installed(h)]:
        root.removeHandler(handler)
    root.setLevel(logging.WARNING)
