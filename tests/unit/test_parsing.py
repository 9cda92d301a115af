"""
Tests for record parsing at the input boundary.

Missing data defaults to zero/empty; present-but-uninterpretable values
raise InvalidRecordError before any reconciliation runs.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from lineitem_kernel.domain.parsing import (
    parse_estimate_line_item,
    parse_estimate_line_items,
    parse_expense,
    parse_expenses,
    parse_quote,
    parse_quotes,
    to_decimal,
)
from lineitem_kernel.domain.records import (
    LineItemCategory,
    LineItemSource,
    QuoteState,
)
from lineitem_kernel.exceptions import InvalidRecordError, RecordError


class TestToDecimal:
    """Amount coercion."""

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_is_zero(self, raw):
        assert to_decimal(raw, "expense", "amount") == Decimal("0")

    def test_float_goes_through_str(self):
        assert to_decimal(0.1, "expense", "amount") == Decimal("0.1")

    def test_string_with_whitespace(self):
        assert to_decimal(" 12.50 ", "expense", "amount") == Decimal("12.50")

    def test_int(self):
        assert to_decimal(1200, "quote", "total") == Decimal("1200")

    def test_decimal_passthrough(self):
        value = Decimal("99.99")
        assert to_decimal(value, "quote", "total") is value

    def test_garbage_raises(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            to_decimal("abc", "expense", "amount")
        assert exc_info.value.record_type == "expense"
        assert exc_info.value.field == "amount"
        assert exc_info.value.value == "abc"

    def test_bool_rejected(self):
        with pytest.raises(InvalidRecordError):
            to_decimal(True, "expense", "amount")

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "-inf"])
    def test_non_finite_rejected(self, raw):
        with pytest.raises(InvalidRecordError):
            to_decimal(raw, "quote", "total")


class TestParseEstimateLineItem:
    """Estimate line item parsing."""

    def test_snake_case(self):
        item = parse_estimate_line_item({
            "id": "LI-1",
            "project_id": "P-1",
            "category": "subcontractors",
            "description": "Framing",
            "estimated_price": "1500",
            "estimated_cost": "1000",
        })
        assert item.id == "LI-1"
        assert item.project_id == "P-1"
        assert item.category == LineItemCategory.SUBCONTRACTORS
        assert item.description == "Framing"
        assert item.estimated_price == Decimal("1500")
        assert item.estimated_cost == Decimal("1000")
        assert item.source == LineItemSource.ESTIMATE
        assert not item.is_change_order

    def test_camel_case(self):
        item = parse_estimate_line_item({
            "id": "LI-2",
            "projectId": "P-1",
            "category": "materials",
            "estimatedPrice": 300,
            "estimatedCost": 200,
        })
        assert item.project_id == "P-1"
        assert item.estimated_price == Decimal("300")
        assert item.estimated_cost == Decimal("200")

    def test_cost_derived_from_quantity_and_unit_cost(self):
        item = parse_estimate_line_item({
            "id": "LI-3",
            "category": "materials",
            "quantity": "4",
            "cost_per_unit": "12.50",
        })
        assert item.estimated_cost == Decimal("50.00")
        assert item.quantity == Decimal("4")

    def test_explicit_cost_wins_over_derivation(self):
        item = parse_estimate_line_item({
            "id": "LI-3",
            "quantity": "4",
            "cost_per_unit": "12.50",
            "estimated_cost": "45",
        })
        assert item.estimated_cost == Decimal("45")

    def test_missing_fields_default(self):
        item = parse_estimate_line_item({"id": "LI-4"})
        assert item.category == LineItemCategory.OTHER
        assert item.description == ""
        assert item.estimated_price == Decimal("0")
        assert item.estimated_cost == Decimal("0")
        assert item.change_order_number is None

    def test_unknown_category_kept_as_string(self):
        item = parse_estimate_line_item({"id": "LI-5", "category": "landscaping"})
        assert item.category == "landscaping"
        assert item.category_key == "landscaping"

    def test_category_key_for_known_member(self):
        item = parse_estimate_line_item({"id": "LI-5", "category": "labor_internal"})
        assert item.category_key == "labor_internal"

    def test_change_order_number_implies_change_order_source(self):
        item = parse_estimate_line_item({
            "id": "LI-6", "change_order_number": "CO-7",
        })
        assert item.source == LineItemSource.CHANGE_ORDER
        assert item.change_order_number == "CO-7"
        assert item.is_change_order

    def test_invalid_source_rejected(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            parse_estimate_line_item({"id": "LI-7", "source": "guess"})
        assert exc_info.value.field == "source"

    def test_invalid_cost_rejected(self):
        with pytest.raises(RecordError):
            parse_estimate_line_item({"id": "LI-8", "estimated_cost": "lots"})


class TestParseQuote:
    """Quote parsing."""

    def test_accepted_quote(self):
        quote = parse_quote({
            "id": "Q-1",
            "line_item_id": "LI-1",
            "quoted_by": "Acme Framing",
            "quote_number": "Q-2026-01",
            "total": "1200",
            "status": "accepted",
            "includes_labor": True,
        })
        assert quote.line_item_id == "LI-1"
        assert quote.quoted_by == "Acme Framing"
        assert quote.total == Decimal("1200")
        assert quote.status == QuoteState.ACCEPTED
        assert quote.is_accepted
        assert quote.includes_labor is True
        assert quote.includes_materials is False

    def test_status_is_case_insensitive(self):
        assert parse_quote({"id": "Q-2", "status": "ACCEPTED"}).is_accepted

    def test_missing_status_is_pending(self):
        quote = parse_quote({"id": "Q-3"})
        assert quote.status == QuoteState.PENDING
        assert not quote.is_accepted

    def test_unknown_status_rejected(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            parse_quote({"id": "Q-4", "status": "maybe"})
        assert exc_info.value.field == "status"

    def test_alternate_keys(self):
        quote = parse_quote({
            "id": "Q-5",
            "estimate_line_item_id": "LI-9",
            "payee_name": "Bolt Electric",
            "total_amount": 640,
        })
        assert quote.line_item_id == "LI-9"
        assert quote.quoted_by == "Bolt Electric"
        assert quote.total == Decimal("640")

    def test_missing_line_item_is_none(self):
        assert parse_quote({"id": "Q-6"}).line_item_id is None

    def test_truthy_non_bool_flag_is_false(self):
        assert parse_quote({"id": "Q-7", "includes_labor": "yes"}).includes_labor is False


class TestParseExpense:
    """Expense parsing."""

    def test_allocated_expense(self):
        expense = parse_expense({
            "id": "E-1",
            "amount": "600",
            "expense_date": "2026-03-14",
            "payee_name": "Acme Framing",
            "line_item_id": "LI-1",
        })
        assert expense.amount == Decimal("600")
        assert expense.expense_date == date(2026, 3, 14)
        assert expense.is_allocated
        assert expense.transaction_type == "expense"

    def test_unallocated_expense(self):
        expense = parse_expense({"id": "E-2", "amount": 50})
        assert expense.line_item_id is None
        assert not expense.is_allocated

    def test_empty_line_item_is_unallocated(self):
        assert not parse_expense({"id": "E-3", "line_item_id": ""}).is_allocated

    def test_missing_amount_is_zero(self):
        assert parse_expense({"id": "E-4"}).amount == Decimal("0")

    def test_timestamp_date_truncated(self):
        expense = parse_expense({"id": "E-5", "expense_date": "2026-03-14T10:22:00Z"})
        assert expense.expense_date == date(2026, 3, 14)

    def test_datetime_value(self):
        expense = parse_expense({"id": "E-6", "expense_date": datetime(2026, 1, 2, 8, 0)})
        assert expense.expense_date == date(2026, 1, 2)

    def test_bad_date_rejected(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            parse_expense({"id": "E-7", "expense_date": "yesterday"})
        assert exc_info.value.field == "expense_date"

    def test_camel_case_keys(self):
        expense = parse_expense({
            "id": "E-8",
            "amount": "10",
            "lineItemId": "LI-2",
            "payeeName": "Depot",
            "transactionType": "bill",
            "isSplit": True,
        })
        assert expense.line_item_id == "LI-2"
        assert expense.payee_name == "Depot"
        assert expense.transaction_type == "bill"
        assert expense.is_split is True


class TestParseMany:
    """Plural helpers return tuples in input order."""

    def test_tuples_preserve_order(self):
        items = parse_estimate_line_items([{"id": "A"}, {"id": "B"}])
        quotes = parse_quotes([{"id": "Q1"}, {"id": "Q2"}])
        expenses = parse_expenses([{"id": "E1"}, {"id": "E2"}])
        assert [i.id for i in items] == ["A", "B"]
        assert [q.id for q in quotes] == ["Q1", "Q2"]
        assert [e.id for e in expenses] == ["E1", "E2"]
        assert isinstance(items, tuple)

    def test_empty(self):
        assert parse_expenses([]) == ()
