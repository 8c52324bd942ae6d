"""
SQLAlchemy ORM persistence models for the expense ledger.

Covers employees (hourly rate lookup), time entries, and expenses.  An
expense belongs to an entity through ``entity_type`` + ``entity_id``
(``PROJECT``, ``WORK_ORDER``, ...), so there is no foreign key on the owner.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)).
* ``expenses.budget_item_id`` is set to NULL by the database when a budget
  line item row is hard-deleted (``ondelete="SET NULL"``).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jobcost_kernel.db.base import TrackedBase


class EmployeeModel(TrackedBase):
    """An employee whose stored hourly rate prices logged labor."""

    __tablename__ = "employees"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.first_name} {self.last_name}>"


class TimeEntryModel(TrackedBase):
    """Hours worked against a project or work order."""

    __tablename__ = "time_entries"

    __table_args__ = (
        Index("idx_time_entry_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    employee_id: Mapped[UUID | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    date_worked: Mapped[date] = mapped_column(Date, nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(nullable=False)
    employee_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    project_budget_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("project_budget_items.id", ondelete="SET NULL"), nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<TimeEntryModel {self.hours_worked}h {self.entity_type}:{self.entity_id}>"


class ExpenseModel(TrackedBase):
    """An actual cost event recorded against a project or work order."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_entity", "entity_type", "entity_id"),
        Index("idx_expense_budget_item", "budget_item_id"),
        Index("idx_expense_time_entry", "time_entry_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False)
    budget_item_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("project_budget_items.id", ondelete="SET NULL"), nullable=True,
    )
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    time_entry_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("time_entries.id"), nullable=True,
    )
    document_id: Mapped[UUID | None] = mapped_column(nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    expense_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    is_billable: Mapped[bool] = mapped_column(default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ExpenseModel {self.amount} {self.expense_type} {self.entity_type}:{self.entity_id}>"
