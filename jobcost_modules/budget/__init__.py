"""
Budget Line Items (``jobcost_modules.budget``).

Responsibility
--------------
Planned cost lines for a project: the ``BudgetLineItem`` value object, the
pure derived-field calculations (estimated cost, selling price, margin,
markup, variance), and ``BudgetItemService`` for persistence.

Architecture position
---------------------
**Modules layer** -- depends on ``jobcost_kernel`` only, plus the expense
ORM tables it reassigns on purge.  Consumed by ``jobcost_modules.project``
for the rollup.

Invariants enforced
-------------------
* Derived fields are computed on read and never persisted.
* Deleting a line item never deletes or rewrites expenses.
"""

from jobcost_modules.budget.calculations import (
    compute_derived,
    effective_quantity,
    effective_selling_unit_price,
)
from jobcost_modules.budget.models import BudgetLineItem, DerivedFields
from jobcost_modules.budget.service import BudgetItemService, validate_item_fields

__all__ = [
    "BudgetItemService",
    "BudgetLineItem",
    "DerivedFields",
    "compute_derived",
    "effective_quantity",
    "effective_selling_unit_price",
    "validate_item_fields",
]
