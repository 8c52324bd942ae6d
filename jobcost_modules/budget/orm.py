"""
SQLAlchemy ORM persistence model for budget line items.

Maps to the ``BudgetLineItem`` DTO in ``jobcost_modules.budget.models``.
Derived totals (estimated cost, selling price, margin, variance) are never
stored here; they are computed on read by ``compute_derived``.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)).
* Soft delete: ``is_active`` false plus ``deleted_at`` keeps the row so
  expenses that reference it keep a valid target.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from jobcost_kernel.db.base import TrackedBase


class BudgetItemModel(TrackedBase):
    """One planned cost line on a project."""

    __tablename__ = "project_budget_items"

    __table_args__ = (
        Index("idx_budget_item_project", "project_id"),
        Index("idx_budget_item_project_active", "project_id", "is_active"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id"), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(nullable=True, default=Decimal("1"))
    base_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    selling_unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    selling_total_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    markup_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)
    actual_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    is_contingency: Mapped[bool] = mapped_column(default=False)
    vendor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    subcontractor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    document_id: Mapped[UUID | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<BudgetItemModel {self.category} project={self.project_id}>"
