"""
Tests for budget line item models and derived-field calculations.

Validates:
- BudgetLineItem.from_row parsing and validation
- compute_derived: cost, selling price precedence, margin, markup, variance
- Property tests: margin identity and zero-selling-price safety
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from jobcost_kernel.exceptions import ValidationError
from jobcost_modules.budget.calculations import (
    compute_derived,
    effective_quantity,
    effective_selling_unit_price,
)
from jobcost_modules.budget.models import BudgetLineItem


def _item(**fields) -> BudgetLineItem:
    return BudgetLineItem(id=uuid4(), project_id=uuid4(), category="Framing", **fields)


# =============================================================================
# Model Tests
# =============================================================================


class TestBudgetLineItemModel:

    def test_from_row_parses_amounts(self):
        row = {
            "id": str(uuid4()),
            "project_id": uuid4(),
            "category": "Electrical",
            "description": "Panel upgrade",
            "quantity": Decimal("2"),
            "base_cost": "150.00",
            "selling_unit_price": None,
            "actual_amount": None,
            "is_contingency": None,
        }
        item = BudgetLineItem.from_row(row)
        assert item.base_cost == Decimal("150.00")
        assert item.actual_amount == Decimal("0")
        assert item.selling_unit_price is None
        assert item.is_contingency is False
        assert item.is_active is True

    def test_from_row_rejects_negative_quantity(self):
        with pytest.raises(ValidationError) as exc_info:
            BudgetLineItem.from_row({
                "id": uuid4(), "project_id": uuid4(), "category": "x", "quantity": -1,
            })
        assert exc_info.value.field == "quantity"

    def test_from_row_requires_project(self):
        with pytest.raises(ValidationError) as exc_info:
            BudgetLineItem.from_row({"id": uuid4(), "category": "x"})
        assert exc_info.value.field == "project_id"

    def test_from_row_rejects_malformed_uuid(self):
        with pytest.raises(ValidationError):
            BudgetLineItem.from_row({"id": "not-a-uuid", "project_id": uuid4(), "category": "x"})

    def test_provider_prefers_subcontractor(self):
        vendor, sub = uuid4(), uuid4()
        item = _item(vendor_id=vendor, subcontractor_id=sub)
        assert item.provider_id == sub
        assert item.provider_kind == "subcontractor"

    def test_provider_vendor_only(self):
        vendor = uuid4()
        item = _item(vendor_id=vendor)
        assert item.provider_id == vendor
        assert item.provider_kind == "vendor"

    def test_no_provider(self):
        assert _item().provider_kind is None

    def test_frozen(self):
        item = _item()
        with pytest.raises(AttributeError):
            item.category = "Roofing"


# =============================================================================
# Derived Fields
# =============================================================================


class TestComputeDerived:

    def test_reference_line_item(self):
        derived = compute_derived(_item(
            quantity=Decimal("10"),
            base_cost=Decimal("50"),
            selling_unit_price=Decimal("70"),
        ))
        assert derived.estimated_cost == Decimal("500")
        assert derived.estimated_selling_price == Decimal("700")
        assert derived.gross_margin_amount == Decimal("200")
        assert derived.gross_margin_percentage == Decimal("28.57")
        assert derived.markup_percentage == Decimal("40.00")
        assert derived.variance == Decimal("500")

    def test_missing_quantity_counts_as_one(self):
        item = _item(base_cost=Decimal("80"))
        assert effective_quantity(item) == Decimal("1")
        assert compute_derived(item).estimated_cost == Decimal("80")

    def test_explicit_zero_quantity(self):
        derived = compute_derived(_item(quantity=Decimal("0"), base_cost=Decimal("80")))
        assert derived.estimated_cost == Decimal("0")

    def test_zero_selling_price_gives_zero_margin_percentage(self):
        derived = compute_derived(_item(quantity=Decimal("3"), base_cost=Decimal("20")))
        assert derived.estimated_selling_price == Decimal("0")
        assert derived.gross_margin_amount == Decimal("-60")
        assert derived.gross_margin_percentage == Decimal("0")

    def test_selling_total_price_overrides_unit_price(self):
        derived = compute_derived(_item(
            quantity=Decimal("4"),
            base_cost=Decimal("100"),
            selling_unit_price=Decimal("150"),
            selling_total_price=Decimal("500"),
        ))
        assert derived.estimated_selling_price == Decimal("500")
        assert derived.gross_margin_amount == Decimal("100")

    def test_explicit_zero_total_price_is_respected(self):
        derived = compute_derived(_item(
            base_cost=Decimal("100"),
            selling_unit_price=Decimal("150"),
            selling_total_price=Decimal("0"),
        ))
        assert derived.estimated_selling_price == Decimal("0")

    def test_markup_drives_unit_price_when_no_price_stored(self):
        item = _item(
            quantity=Decimal("2"),
            base_cost=Decimal("100"),
            markup_percentage=Decimal("25"),
        )
        assert effective_selling_unit_price(item) == Decimal("125")
        derived = compute_derived(item)
        assert derived.estimated_selling_price == Decimal("250")
        assert derived.markup_percentage == Decimal("25")

    def test_derived_markup_zero_when_no_cost(self):
        derived = compute_derived(_item(selling_unit_price=Decimal("10")))
        assert derived.markup_percentage == Decimal("0")

    def test_over_budget_variance_not_clamped(self):
        derived = compute_derived(_item(
            quantity=Decimal("10"),
            base_cost=Decimal("50"),
            actual_amount=Decimal("650"),
        ))
        assert derived.variance == Decimal("-150")
        assert derived.is_over_budget


# =============================================================================
# Property Tests
# =============================================================================

amounts = st.decimals(min_value=0, max_value=1_000_000, places=2, allow_nan=False, allow_infinity=False)
quantities = st.decimals(min_value=0, max_value=10_000, places=3, allow_nan=False, allow_infinity=False)


class TestDerivedFieldProperties:

    @given(quantity=quantities, base=amounts, price=amounts, actual=amounts)
    @settings(max_examples=200)
    def test_margin_and_variance_identities(self, quantity, base, price, actual):
        derived = compute_derived(_item(
            quantity=quantity,
            base_cost=base,
            selling_unit_price=price,
            actual_amount=actual,
        ))
        assert derived.estimated_cost == quantity * base
        assert derived.gross_margin_amount == derived.estimated_selling_price - derived.estimated_cost
        assert derived.variance == derived.estimated_cost - actual

    @given(quantity=quantities, base=amounts)
    @settings(max_examples=100)
    def test_no_selling_price_never_divides_by_zero(self, quantity, base):
        derived = compute_derived(_item(quantity=quantity, base_cost=base))
        assert derived.gross_margin_percentage == Decimal("0")
