"""
Domain records for line-item cost control.

Pure, immutable inputs to the reconciliation engine plus the helpers that
build them from plain mappings.
"""

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
    EstimateLineItem,
    Expense,
    LineItemCategory,
    LineItemSource,
    Quote,
    QuoteState,
)

__all__ = [
    "EstimateLineItem",
    "Expense",
    "LineItemCategory",
    "LineItemSource",
    "Quote",
    "QuoteState",
    "parse_estimate_line_item",
    "parse_estimate_line_items",
    "parse_expense",
    "parse_expenses",
    "parse_quote",
    "parse_quotes",
    "to_decimal",
]
