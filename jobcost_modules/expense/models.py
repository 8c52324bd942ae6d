"""
Expense Domain Models.

The nouns of the ledger: expenses, time entries, employees, and the pair a
``log_time`` call produces.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from jobcost_kernel.domain.money import ZERO, require_non_negative
from jobcost_kernel.exceptions import ValidationError
from jobcost_modules._row_helpers import parse_date, parse_uuid


class EntityType:
    """Owner kinds an expense or time entry can be attached to."""
    PROJECT = "PROJECT"
    WORK_ORDER = "WORK_ORDER"


class ExpenseType:
    """Well-known expense types.  Any other non-empty string is accepted."""
    LABOR = "LABOR"
    MATERIAL = "MATERIAL"
    SUBCONTRACTOR = "SUBCONTRACTOR"
    EQUIPMENT = "EQUIPMENT"
    OTHER = "OTHER"


def normalize_entity_type(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("entity_type", value, "must be a non-empty string")
    return value.strip().upper()


@dataclass(frozen=True)
class Expense:
    """An actual cost recorded against a project or work order."""
    id: UUID
    entity_type: str
    entity_id: UUID
    expense_date: date
    amount: Decimal
    description: str
    expense_type: str | None = None
    budget_item_id: UUID | None = None
    vendor_id: UUID | None = None
    time_entry_id: UUID | None = None
    document_id: UUID | None = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO
    is_billable: bool = False
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_labor(self) -> bool:
        return (self.expense_type or "").upper() == ExpenseType.LABOR

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Expense:
        """Parse and validate an ``expenses`` row."""
        description = row.get("description")
        if not isinstance(description, str):
            raise ValidationError("description", description, "is required")
        quantity = row.get("quantity")
        unit_price = row.get("unit_price")
        return cls(
            id=parse_uuid(row, "id", required=True),
            entity_type=normalize_entity_type(row.get("entity_type")),
            entity_id=parse_uuid(row, "entity_id", required=True),
            expense_date=parse_date(row, "expense_date"),
            amount=require_non_negative(row.get("amount"), "amount"),
            description=description,
            expense_type=row.get("expense_type"),
            budget_item_id=parse_uuid(row, "budget_item_id"),
            vendor_id=parse_uuid(row, "vendor_id"),
            time_entry_id=parse_uuid(row, "time_entry_id"),
            document_id=parse_uuid(row, "document_id"),
            quantity=Decimal("1") if quantity is None else require_non_negative(quantity, "quantity"),
            unit_price=ZERO if unit_price is None else require_non_negative(unit_price, "unit_price"),
            is_billable=bool(row.get("is_billable") or False),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


@dataclass(frozen=True)
class TimeEntry:
    """Hours an employee worked on an entity."""
    id: UUID
    entity_type: str
    entity_id: UUID
    date_worked: date
    hours_worked: Decimal
    employee_id: UUID | None = None
    employee_rate: Decimal | None = None
    total_cost: Decimal | None = None
    project_budget_item_id: UUID | None = None
    notes: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> TimeEntry:
        rate = row.get("employee_rate")
        cost = row.get("total_cost")
        return cls(
            id=parse_uuid(row, "id", required=True),
            entity_type=normalize_entity_type(row.get("entity_type")),
            entity_id=parse_uuid(row, "entity_id", required=True),
            date_worked=parse_date(row, "date_worked"),
            hours_worked=require_non_negative(row.get("hours_worked"), "hours_worked"),
            employee_id=parse_uuid(row, "employee_id"),
            employee_rate=None if rate is None else require_non_negative(rate, "employee_rate"),
            total_cost=None if cost is None else require_non_negative(cost, "total_cost"),
            project_budget_item_id=parse_uuid(row, "project_budget_item_id"),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
        )


@dataclass(frozen=True)
class Employee:
    id: UUID
    first_name: str
    last_name: str
    hourly_rate: Decimal | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Employee:
        rate = row.get("hourly_rate")
        return cls(
            id=parse_uuid(row, "id", required=True),
            first_name=row.get("first_name") or "",
            last_name=row.get("last_name") or "",
            hourly_rate=None if rate is None else require_non_negative(rate, "hourly_rate"),
        )


@dataclass(frozen=True)
class LoggedTime:
    """Result of ``TimeEntryService.log_time``: the entry and its labor expense, if any."""
    time_entry: TimeEntry
    labor_expense: Expense | None = None
