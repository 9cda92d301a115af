"""
Record parsing -- build domain records from plain mappings.

Data-access layers hand over rows as dicts (database rows, JSON payloads,
YAML fixtures).  These helpers turn them into frozen records with the
missing-data defaults the engine relies on:

* missing or null numeric fields become ``Decimal("0")``
* missing strings become ``""`` (or ``None`` for optional references)
* both snake_case and camelCase keys are accepted

Values that are present but cannot be interpreted (``"abc"`` as an amount,
an unknown quote status) raise ``InvalidRecordError``.  This happens at the
input boundary, before any reconciliation runs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from lineitem_kernel.domain.records import (
    EstimateLineItem,
    Expense,
    LineItemCategory,
    LineItemSource,
    Quote,
    QuoteState,
)
from lineitem_kernel.exceptions import InvalidRecordError

_MISSING = object()


def _lookup(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value among ``keys``, or ``_MISSING``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return _MISSING


def to_decimal(value: Any, record_type: str, field: str) -> Decimal:
    """
    Convert a raw amount to Decimal.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.
    """
    if value is _MISSING or value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise InvalidRecordError(record_type, field, value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise InvalidRecordError(record_type, field, value) from e
    if not result.is_finite():
        raise InvalidRecordError(record_type, field, value)
    return result


def _to_str(value: Any, default: str = "") -> str:
    if value is _MISSING:
        return default
    return str(value)


def _to_optional_str(value: Any) -> str | None:
    if value is _MISSING or value == "":
        return None
    return str(value)


def _to_date(value: Any, record_type: str, field: str) -> date | None:
    if value is _MISSING or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise InvalidRecordError(record_type, field, value) from e


def _to_category(value: Any) -> str:
    if value is _MISSING or value == "":
        return LineItemCategory.OTHER
    try:
        return LineItemCategory(value)
    except ValueError:
        return str(value)


def parse_estimate_line_item(data: Mapping[str, Any]) -> EstimateLineItem:
    """
    Parse an ``EstimateLineItem``.

    When no explicit estimated cost is given, it is derived as
    ``quantity x cost_per_unit``.
    """
    rt = "estimate_line_item"
    quantity = to_decimal(_lookup(data, "quantity"), rt, "quantity")
    cost_per_unit = to_decimal(
        _lookup(data, "cost_per_unit", "costPerUnit"), rt, "cost_per_unit"
    )
    raw_cost = _lookup(data, "estimated_cost", "estimatedCost", "total_cost")
    if raw_cost is _MISSING:
        estimated_cost = quantity * cost_per_unit
    else:
        estimated_cost = to_decimal(raw_cost, rt, "estimated_cost")

    change_order_number = _to_optional_str(
        _lookup(data, "change_order_number", "changeOrderNumber")
    )
    raw_source = _lookup(data, "source")
    if raw_source is _MISSING:
        source = (
            LineItemSource.CHANGE_ORDER if change_order_number
            else LineItemSource.ESTIMATE
        )
    else:
        try:
            source = LineItemSource(raw_source)
        except ValueError as e:
            raise InvalidRecordError(rt, "source", raw_source) from e

    return EstimateLineItem(
        id=_to_str(_lookup(data, "id")),
        project_id=_to_str(_lookup(data, "project_id", "projectId")),
        category=_to_category(_lookup(data, "category")),
        description=_to_str(_lookup(data, "description")),
        estimated_price=to_decimal(
            _lookup(data, "estimated_price", "estimatedPrice", "total"),
            rt, "estimated_price",
        ),
        estimated_cost=estimated_cost,
        quantity=quantity,
        cost_per_unit=cost_per_unit,
        source=source,
        change_order_number=change_order_number,
    )


def parse_quote(data: Mapping[str, Any]) -> Quote:
    """Parse a ``Quote``.  A missing status means ``pending``."""
    rt = "quote"
    raw_status = _lookup(data, "status")
    if raw_status is _MISSING:
        status = QuoteState.PENDING
    else:
        try:
            status = QuoteState(str(raw_status).lower())
        except ValueError as e:
            raise InvalidRecordError(rt, "status", raw_status) from e

    return Quote(
        id=_to_str(_lookup(data, "id")),
        line_item_id=_to_optional_str(
            _lookup(data, "line_item_id", "lineItemId", "estimate_line_item_id")
        ),
        quoted_by=_to_str(_lookup(data, "quoted_by", "quotedBy", "payee_name")),
        quote_number=_to_str(_lookup(data, "quote_number", "quoteNumber")),
        total=to_decimal(
            _lookup(data, "total", "total_amount", "totalAmount"), rt, "total"
        ),
        status=status,
        includes_labor=bool(_lookup(data, "includes_labor", "includesLabor") is True),
        includes_materials=bool(
            _lookup(data, "includes_materials", "includesMaterials") is True
        ),
        project_id=_to_optional_str(_lookup(data, "project_id", "projectId")),
    )


def parse_expense(data: Mapping[str, Any]) -> Expense:
    """Parse an ``Expense``.  No line item reference means unallocated."""
    rt = "expense"
    return Expense(
        id=_to_str(_lookup(data, "id")),
        amount=to_decimal(_lookup(data, "amount"), rt, "amount"),
        expense_date=_to_date(
            _lookup(data, "expense_date", "expenseDate"), rt, "expense_date"
        ),
        payee_id=_to_optional_str(_lookup(data, "payee_id", "payeeId")),
        payee_name=_to_str(_lookup(data, "payee_name", "payeeName")),
        description=_to_str(_lookup(data, "description")),
        transaction_type=_to_str(
            _lookup(data, "transaction_type", "transactionType"), "expense"
        ),
        line_item_id=_to_optional_str(
            _lookup(data, "line_item_id", "lineItemId", "estimate_line_item_id")
        ),
        project_id=_to_optional_str(_lookup(data, "project_id", "projectId")),
        is_split=bool(_lookup(data, "is_split", "isSplit") is True),
    )


def parse_estimate_line_items(rows: Iterable[Mapping[str, Any]]) -> tuple[EstimateLineItem, ...]:
    return tuple(parse_estimate_line_item(row) for row in rows)


def parse_quotes(rows: Iterable[Mapping[str, Any]]) -> tuple[Quote, ...]:
    return tuple(parse_quote(row) for row in rows)


def parse_expenses(rows: Iterable[Mapping[str, Any]]) -> tuple[Expense, ...]:
    return tuple(parse_expense(row) for row in rows)
