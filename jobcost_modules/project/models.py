"""
Project Domain Models.

The project record with its denormalized budget fields, the budget status
and usage band enums, and the derived ``BudgetSummary`` a rollup produces.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from jobcost_kernel.domain.money import ZERO, to_decimal
from jobcost_kernel.exceptions import ValidationError
from jobcost_modules._row_helpers import parse_uuid


class BudgetStatus(Enum):
    """Health of a project budget, stored on ``projects.budget_status``."""
    NOT_SET = "not_set"
    ON_TRACK = "on_track"
    WARNING = "warning"
    CRITICAL = "critical"


class UsageBand(Enum):
    """Colour band for the dashboard budget usage chart."""
    NORMAL = "normal"
    ELEVATED = "elevated"
    OVER = "over"


@dataclass(frozen=True)
class LineItemVariance:
    """One line item's contribution to the rollup."""
    budget_item_id: UUID
    category: str
    description: str | None
    estimated_cost: Decimal
    estimated_selling_price: Decimal
    actual_amount: Decimal
    ledger_actual: Decimal
    variance: Decimal
    is_contingency: bool = False

    @property
    def is_over_budget(self) -> bool:
        return self.variance < ZERO


@dataclass(frozen=True)
class BudgetSummary:
    """
    Project budget rollup.

    ``total_actual`` comes from the expense ledger.  The line items' own
    ``actual_amount`` values are reported separately in
    ``line_item_actual_total`` and never mixed into the ledger figures.
    """
    project_id: UUID
    total_estimated_cost: Decimal = ZERO
    total_estimated_selling_price: Decimal = ZERO
    total_gross_margin_amount: Decimal = ZERO
    gross_margin_percentage: Decimal = ZERO
    total_budget: Decimal = ZERO
    total_actual: Decimal = ZERO
    line_item_actual_total: Decimal = ZERO
    line_item_variance_total: Decimal = ZERO
    variance: Decimal = ZERO
    percent_used: Decimal = ZERO
    display_percent_used: int = 0
    remaining: Decimal = ZERO
    uncategorized_total: Decimal = ZERO
    contingency_total: Decimal = ZERO
    contingency_used: Decimal = ZERO
    contingency_remaining: Decimal = ZERO
    status: BudgetStatus = BudgetStatus.NOT_SET
    usage_band: UsageBand = UsageBand.NORMAL
    line_items: tuple[LineItemVariance, ...] = field(default_factory=tuple)

    @property
    def line_item_count(self) -> int:
        return len(self.line_items)

    @property
    def is_over_budget(self) -> bool:
        return self.variance < ZERO


@dataclass(frozen=True)
class Project:
    """A project row as the rollup sees it."""
    id: UUID
    name: str
    status: str = "active"
    total_budget: Decimal = ZERO
    current_expenses: Decimal = ZERO
    budget_status: BudgetStatus = BudgetStatus.NOT_SET
    original_selling_price: Decimal | None = None
    original_contingency_amount: Decimal | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Project:
        name = row.get("name")
        if not isinstance(name, str):
            raise ValidationError("name", name, "is required")
        raw_status = row.get("budget_status") or BudgetStatus.NOT_SET.value
        try:
            budget_status = BudgetStatus(raw_status)
        except ValueError as exc:
            raise ValidationError("budget_status", raw_status, "unknown budget status") from exc
        selling = row.get("original_selling_price")
        contingency = row.get("original_contingency_amount")
        return cls(
            id=parse_uuid(row, "id", required=True),
            name=name,
            status=row.get("status") or "active",
            total_budget=to_decimal(row.get("total_budget") or ZERO, "total_budget"),
            current_expenses=to_decimal(row.get("current_expenses") or ZERO, "current_expenses"),
            budget_status=budget_status,
            original_selling_price=None if selling is None else to_decimal(
                selling, "original_selling_price"
            ),
            original_contingency_amount=None if contingency is None else to_decimal(
                contingency, "original_contingency_amount"
            ),
            updated_at=row.get("updated_at"),
        )
