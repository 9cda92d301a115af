"""
lineitem_engines.summary -- Project-wide roll-up of reconciled line items.

Responsibility:
    Total the reconciler output into a single ``ReconciliationSummary`` and
    measure spend that is not yet explained by any line item.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Consumes
    ``LineItemControlData`` plus the raw expense list.

Invariants enforced:
    - Conservation: ``total_allocated + total_unallocated`` equals the sum
      of every expense amount.  Expenses linked to a line item id
      that is not part of the estimate are unallocated
      (``orphaned_expense_total``), alongside those with no link at all
      (``unlinked_expense_total``).
    - Line item totals are taken from the reconciled records only; linked
      expense lists are never summed a second time.
    - ``completion_percentage`` is 0 when total estimated cost is 0.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from lineitem_engines.reconciler import LineItemControlData
from lineitem_engines.tracer import traced_engine
from lineitem_engines.variance import percent_of
from lineitem_kernel.domain.records import Expense
from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines.summary")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ReconciliationSummary:
    """Project totals computed from one reconciliation run."""

    total_contract_value: Decimal
    total_estimated_cost: Decimal
    total_quoted: Decimal
    total_quoted_with_internal: Decimal
    total_actual: Decimal
    total_allocated: Decimal
    total_unallocated: Decimal
    total_expenses: Decimal
    unlinked_expense_total: Decimal
    orphaned_expense_total: Decimal
    total_variance: Decimal
    line_items_over_budget: int
    line_items_under_budget: int
    completion_percentage: Decimal
    line_item_count: int
    line_items_with_quotes: int
    estimate_to_quote_percent: Decimal
    quote_to_actual_percent: Decimal
    external_line_item_count: int
    allocated_line_item_count: int
    allocation_percent: Decimal

    @property
    def pending_allocation_count(self) -> int:
        """External line items with no allocated expense yet."""
        return self.external_line_item_count - self.allocated_line_item_count

    @property
    def has_unallocated_spend(self) -> bool:
        return self.total_unallocated != _ZERO


class SummaryAggregator:
    """
    Roll reconciled line items up into project totals.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - ``total_actual`` = ``total_allocated`` = sum of per-item
          ``allocated_amount``.
        - ``total_unallocated`` = all expenses - ``total_allocated``.
        - ``total_quoted_with_internal`` uses estimated cost for internal
          items and quoted cost for external ones.
        - ``total_variance`` and the over/under budget counts cover priced
          items only (quote status not ``internal`` or ``none``) and follow
          the sign of ``cost_variance``.
    """

    @traced_engine(
        "summary", "1.0", fingerprint_fields=("line_items", "expenses"),
    )
    def summarize(
        self,
        *,
        line_items: Sequence[LineItemControlData],
        expenses: Sequence[Expense],
    ) -> ReconciliationSummary:
        """
        Build the project summary.

        Args:
            line_items: Reconciler output for the project.
            expenses: Every expense for the project, linked or not.
        """
        t0 = time.monotonic()
        known_ids = {item.line_item_id for item in line_items}

        total_expenses = sum((e.amount for e in expenses), _ZERO)
        unlinked = sum((e.amount for e in expenses if not e.line_item_id), _ZERO)
        orphaned = sum(
            (
                e.amount for e in expenses
                if e.line_item_id and e.line_item_id not in known_ids
            ),
            _ZERO,
        )

        total_estimated = sum((i.estimated_cost for i in line_items), _ZERO)
        total_quoted = sum((i.quoted_cost for i in line_items), _ZERO)
        total_allocated = sum((i.allocated_amount for i in line_items), _ZERO)
        total_actual = sum((i.actual_amount for i in line_items), _ZERO)
        priced = [i for i in line_items if i.has_vendor_price]
        total_variance = sum((i.cost_variance for i in priced), _ZERO)

        external = [i for i in line_items if not i.is_internal]
        allocated_count = sum(1 for i in external if i.expense_count > 0)
        allocation_percent = (
            percent_of(Decimal(allocated_count), Decimal(len(external)))
            if external else _HUNDRED
        )

        summary = ReconciliationSummary(
            total_contract_value=sum((i.estimated_price for i in line_items), _ZERO),
            total_estimated_cost=total_estimated,
            total_quoted=total_quoted,
            total_quoted_with_internal=sum(
                (i.estimated_cost if i.is_internal else i.quoted_cost for i in line_items),
                _ZERO,
            ),
            total_actual=total_actual,
            total_allocated=total_allocated,
            total_unallocated=total_expenses - total_allocated,
            total_expenses=total_expenses,
            unlinked_expense_total=unlinked,
            orphaned_expense_total=orphaned,
            total_variance=total_variance,
            line_items_over_budget=sum(1 for i in priced if i.cost_variance > _ZERO),
            line_items_under_budget=sum(1 for i in priced if i.cost_variance < _ZERO),
            completion_percentage=percent_of(total_actual, total_estimated),
            line_item_count=len(line_items),
            line_items_with_quotes=sum(1 for i in line_items if i.accepted_quotes),
            estimate_to_quote_percent=percent_of(total_quoted - total_estimated, total_estimated),
            quote_to_actual_percent=percent_of(total_actual - total_quoted, total_quoted),
            external_line_item_count=len(external),
            allocated_line_item_count=allocated_count,
            allocation_percent=allocation_percent,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("reconciliation_summary_completed", extra={
            "line_item_count": summary.line_item_count,
            "total_allocated": str(summary.total_allocated),
            "total_unallocated": str(summary.total_unallocated),
            "orphaned_expense_total": str(summary.orphaned_expense_total),
            "duration_ms": duration_ms,
        })
        if orphaned != _ZERO:
            logger.warning("orphaned_expenses_detected", extra={
                "orphaned_expense_total": str(orphaned),
            })
        return summary
