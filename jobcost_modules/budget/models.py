"""
Budget Domain Models (``jobcost_modules.budget.models``).

Responsibility
--------------
Frozen dataclass value objects for budget line items and their derived
planning totals.  ``BudgetLineItem.from_row`` is the validated boundary
between loosely typed store rows and the domain.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Quantity and every currency field are ``>= 0``; a row that violates this
  raises ``ValidationError`` on read.

Failure modes
-------------
* Missing ``id``/``project_id``/``category`` or a malformed number in a
  store row -> ``ValidationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from jobcost_kernel.domain.money import ZERO, require_non_negative
from jobcost_kernel.exceptions import ValidationError
from jobcost_modules._row_helpers import parse_uuid

_OPTIONAL_AMOUNTS = (
    "quantity",
    "base_cost",
    "selling_unit_price",
    "selling_total_price",
)


@dataclass(frozen=True)
class BudgetLineItem:
    """One planned cost line on a project."""
    id: UUID
    project_id: UUID
    category: str
    description: str | None = None
    quantity: Decimal | None = None
    base_cost: Decimal | None = None
    selling_unit_price: Decimal | None = None
    selling_total_price: Decimal | None = None
    markup_percentage: Decimal | None = None
    actual_amount: Decimal = ZERO
    is_contingency: bool = False
    vendor_id: UUID | None = None
    subcontractor_id: UUID | None = None
    document_id: UUID | None = None
    is_active: bool = True
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def provider_id(self) -> UUID | None:
        """Subcontractor when set, otherwise vendor."""
        return self.subcontractor_id or self.vendor_id

    @property
    def provider_kind(self) -> str | None:
        if self.subcontractor_id is not None:
            return "subcontractor"
        if self.vendor_id is not None:
            return "vendor"
        return None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> BudgetLineItem:
        """Parse and validate a ``project_budget_items`` row."""
        category = row.get("category")
        if not isinstance(category, str):
            raise ValidationError("category", category, "is required")

        amounts: dict[str, Decimal | None] = {}
        for key in _OPTIONAL_AMOUNTS:
            value = row.get(key)
            amounts[key] = None if value is None else require_non_negative(value, key)

        markup = row.get("markup_percentage")
        actual = row.get("actual_amount")

        return cls(
            id=parse_uuid(row, "id", required=True),
            project_id=parse_uuid(row, "project_id", required=True),
            category=category,
            description=row.get("description"),
            markup_percentage=None if markup is None else require_non_negative(
                markup, "markup_percentage"
            ),
            actual_amount=ZERO if actual is None else require_non_negative(actual, "actual_amount"),
            is_contingency=bool(row.get("is_contingency") or False),
            vendor_id=parse_uuid(row, "vendor_id"),
            subcontractor_id=parse_uuid(row, "subcontractor_id"),
            document_id=parse_uuid(row, "document_id"),
            is_active=bool(row.get("is_active", True)),
            deleted_at=row.get("deleted_at"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            **amounts,
        )


@dataclass(frozen=True)
class DerivedFields:
    """Planning totals computed from a line item."""
    estimated_cost: Decimal
    estimated_selling_price: Decimal
    gross_margin_amount: Decimal
    gross_margin_percentage: Decimal
    markup_percentage: Decimal
    variance: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.variance < ZERO
