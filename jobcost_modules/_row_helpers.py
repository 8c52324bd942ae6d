"""
Row parsing helpers (``jobcost_modules._row_helpers``).

Shared by every ``from_row`` classmethod: store rows are loosely typed dicts,
these helpers turn individual columns into domain types or raise
``ValidationError`` naming the offending column.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any
from uuid import UUID

from jobcost_kernel.exceptions import ValidationError


def parse_uuid(row: Mapping[str, Any], key: str, required: bool = False) -> UUID | None:
    value = row.get(key)
    if value is None:
        if required:
            raise ValidationError(key, value, "is required")
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise ValidationError(key, value, "must be a UUID") from exc


def parse_date(row: Mapping[str, Any], key: str) -> date:
    value = row.get(key)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as exc:
            raise ValidationError(key, value, "must be an ISO date") from exc
    raise ValidationError(key, value, "is required")


def require_text(value: Any, key: str) -> str:
    """Return ``value`` stripped, rejecting None and blank strings."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(key, value, "must be a non-empty string")
    return value.strip()
