"""
SQLAlchemy ORM persistence model for projects.

Only the columns the job cost core reads or writes are mapped: identity,
name/status, and the denormalized budget summary fields that
``BudgetRollupService.publish`` and ``capture_baseline`` maintain.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (Numeric(38,9)).
* ``budget_status`` stores a ``BudgetStatus`` value string.
"""

from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from jobcost_kernel.db.base import TrackedBase


class ProjectModel(TrackedBase):
    """A construction project with its denormalized budget summary."""

    __tablename__ = "projects"

    __table_args__ = (
        Index("idx_project_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")
    total_budget: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    current_expenses: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    budget_status: Mapped[str] = mapped_column(String(20), nullable=False, default="not_set")
    original_selling_price: Mapped[Decimal | None] = mapped_column(nullable=True)
    original_contingency_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} [{self.budget_status}]>"
