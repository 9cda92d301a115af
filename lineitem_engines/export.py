"""
Flat-row export of a reconciliation result.

Each ``ExportRow`` is built from one ``LineItemControlData`` and its risk
assessment without re-deriving any sum.  ``write_csv`` streams the rows
through ``csv.writer`` with a header row.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import TextIO

from lineitem_config.schema import ReconciliationPolicy
from lineitem_engines.classification import QuoteStatus
from lineitem_engines.control import ReconciliationResult

COLUMNS: tuple[str, ...] = (
    "Category",
    "Description",
    "Source",
    "Change Order",
    "Est. Price",
    "Est. Cost",
    "Quoted Cost",
    "Payee Name",
    "Allocated Expenses",
    "Remaining to Allocate",
    "Allocation Status",
    "Actual",
    "Expense Count",
    "Est vs Quote",
    "Est vs Quote %",
    "Quote Status",
    "Risk Score",
)

INTERNAL_PAYEE = "Internal"
NO_PAYEE = "-"


@dataclass(frozen=True)
class ExportRow:
    """One exported line item.  Field order matches ``COLUMNS``."""

    category: str
    description: str
    source: str
    change_order: str
    estimated_price: Decimal
    estimated_cost: Decimal
    quoted_cost: Decimal
    payee_name: str
    allocated_amount: Decimal
    remaining_to_allocate: Decimal
    allocation_status: str
    actual_amount: Decimal
    expense_count: int
    # None when the item has no vendor price (internal or unquoted).
    cost_variance: Decimal | None
    cost_variance_percent: Decimal | None
    quote_status: str
    risk_score: Decimal

    def as_csv_row(self) -> list[str]:
        if self.cost_variance is None:
            variance = percent = ""
        else:
            variance = str(self.cost_variance)
            rounded = self.cost_variance_percent.quantize(
                Decimal("0.1"), rounding=ROUND_HALF_UP
            )
            percent = f"{rounded}%"
        return [
            self.category,
            self.description,
            self.source,
            self.change_order,
            str(self.estimated_price),
            str(self.estimated_cost),
            str(self.quoted_cost),
            self.payee_name,
            str(self.allocated_amount),
            str(self.remaining_to_allocate),
            self.allocation_status,
            str(self.actual_amount),
            str(self.expense_count),
            variance,
            percent,
            self.quote_status,
            str(self.risk_score),
        ]


def to_export_rows(
    result: ReconciliationResult,
    policy: ReconciliationPolicy | None = None,
) -> list[ExportRow]:
    """Project a result onto export rows, one per line item, in result order."""
    policy = policy or ReconciliationPolicy()
    rows = []
    for item, assessment in zip(result.line_items, result.risk):
        if item.quote_status == QuoteStatus.INTERNAL:
            payee = INTERNAL_PAYEE
        else:
            payee = "; ".join(item.quoted_by) or NO_PAYEE
        priced = item.has_vendor_price
        rows.append(ExportRow(
            category=policy.label_for(item.category),
            description=item.description,
            source=item.source.value,
            change_order=item.change_order_number or "",
            estimated_price=item.estimated_price,
            estimated_cost=item.estimated_cost,
            quoted_cost=item.quoted_cost,
            payee_name=payee,
            allocated_amount=item.allocated_amount,
            remaining_to_allocate=item.remaining_to_allocate,
            allocation_status=item.allocation_status.value,
            actual_amount=item.actual_amount,
            expense_count=item.expense_count,
            cost_variance=item.cost_variance if priced else None,
            cost_variance_percent=item.cost_variance_percent if priced else None,
            quote_status=item.quote_status.value,
            risk_score=assessment.score,
        ))
    return rows


def write_csv(rows: list[ExportRow], stream: TextIO) -> int:
    """Write a header plus ``rows`` to ``stream``.  Returns the row count."""
    writer = csv.writer(stream, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(COLUMNS)
    for row in rows:
        writer.writerow(row.as_csv_row())
    return len(rows)
