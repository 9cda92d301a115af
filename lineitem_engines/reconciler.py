"""
lineitem_engines.reconciler -- Join estimate line items with quotes and expenses.

Responsibility:
    Produce one ``LineItemControlData`` per estimate line item by grouping
    quotes and explicitly allocated expenses under the line item they
    reference, then deriving committed cost, allocated spend, variances and
    both status classifications.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Uses ``classification`` and ``variance``; consumed by ``risk``,
    ``summary`` and ``control``.

Invariants enforced:
    - Only estimate line items anchor the join.  Quotes and expenses that
      reference an unknown line item are left out of every per-item view.
    - Actual spend is the sum of explicitly linked expenses only.  There is
      no category-based inference.
    - Every expense record is counted, including records that repeat an
      id.  Repeated estimate line item ids keep the first row, with a
      warning; their quotes and expenses still join that row.
    - Output order follows the order of the estimate line items.
    - Identical inputs produce identical outputs; no clock or counters.

Failure modes:
    None.  The reconciler is total over well-typed records; malformed
    references are handled by omission.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from lineitem_config.schema import ReconciliationPolicy
from lineitem_engines.classification import (
    AllocationStatus,
    QuoteStatus,
    classify_allocation_status,
    classify_quote_status,
)
from lineitem_engines.tracer import traced_engine
from lineitem_engines.variance import calculate_cost_variance, calculate_spend_variance
from lineitem_kernel.domain.records import EstimateLineItem, Expense, LineItemSource, Quote
from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines.reconciler")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LineItemControlData:
    """
    Reconciled financial view of one estimate line item.

    Sums are computed once here.  ``quotes`` and ``correlated_expenses``
    are kept for drill-down only and must not be re-aggregated.
    """

    line_item_id: str
    category: str
    description: str
    source: LineItemSource
    change_order_number: str | None
    is_internal: bool

    estimated_price: Decimal
    estimated_cost: Decimal

    quotes: tuple[Quote, ...]
    accepted_quotes: tuple[Quote, ...]
    quoted_by: tuple[str, ...]
    quoted_cost: Decimal

    correlated_expenses: tuple[Expense, ...]
    expense_count: int
    allocated_amount: Decimal
    actual_amount: Decimal
    remaining_to_allocate: Decimal

    cost_variance: Decimal
    cost_variance_percent: Decimal

    baseline_cost: Decimal
    spend_variance: Decimal
    spend_variance_percent: Decimal
    completion_percent: Decimal

    quote_status: QuoteStatus
    allocation_status: AllocationStatus

    @property
    def is_over_budget(self) -> bool:
        """Actual spend exceeds the baseline (quoted, else estimated)."""
        return self.actual_amount > self.baseline_cost

    @property
    def has_vendor_price(self) -> bool:
        """An accepted quote exists to compare with the estimate.

        False for internal items and items with no accepted quote; their
        ``cost_variance`` is not an estimate-vs-quote figure.
        """
        return self.quote_status not in (QuoteStatus.INTERNAL, QuoteStatus.NONE)

    @property
    def is_change_order(self) -> bool:
        return self.source == LineItemSource.CHANGE_ORDER


def repeated_expense_ids(expenses: Iterable[Expense]) -> tuple[str, ...]:
    """Non-empty expense ids that occur more than once, in first-seen order.

    Reporting only: every expense record is still counted.
    """
    seen: set[str] = set()
    repeated: list[str] = []
    for expense in expenses:
        if not expense.id:
            continue
        if expense.id in seen and expense.id not in repeated:
            repeated.append(expense.id)
        seen.add(expense.id)
    return tuple(repeated)


def unique_line_items(
    line_items: Iterable[EstimateLineItem],
) -> tuple[EstimateLineItem, ...]:
    """Drop repeated estimate line item ids, keeping the first occurrence."""
    seen: set[str] = set()
    result: list[EstimateLineItem] = []
    for item in line_items:
        if item.id in seen:
            logger.warning("duplicate_line_item_ignored", extra={
                "line_item_id": item.id,
            })
            continue
        seen.add(item.id)
        result.append(item)
    return tuple(result)


def _group_by_line_item(records: Iterable) -> dict[str, list]:
    groups: dict[str, list] = {}
    for record in records:
        if record.line_item_id:
            groups.setdefault(record.line_item_id, []).append(record)
    return groups


class LineItemReconciler:
    """
    Pure reconciler for one project's record sets.

    Contract:
        No I/O, fully deterministic.  Policy is passed at construction.
    Guarantees:
        - ``quoted_cost`` = sum of accepted quote totals for the item.
        - ``allocated_amount`` = ``actual_amount`` = sum of linked expenses.
        - ``remaining_to_allocate`` = ``max(quoted_cost - allocated_amount, 0)``.
        - A line item with no quotes and no expenses still yields a record
          with zero amounts and a ``none``/``internal``/``not_quoted`` status.
    Non-goals:
        - Does not total unallocated spend (see ``SummaryAggregator``).
        - Does not resolve competing accepted quotes; they are flagged
          ``over``.
    """

    def __init__(self, policy: ReconciliationPolicy | None = None) -> None:
        self._policy = policy or ReconciliationPolicy()

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    @traced_engine(
        "reconciler", "1.0",
        fingerprint_fields=("estimate_line_items", "quotes", "expenses"),
    )
    def reconcile_line_items(
        self,
        *,
        estimate_line_items: Sequence[EstimateLineItem],
        quotes: Sequence[Quote],
        expenses: Sequence[Expense],
    ) -> tuple[LineItemControlData, ...]:
        """
        Reconcile every estimate line item against its quotes and expenses.

        Args:
            estimate_line_items: The project's line items, in display order.
            quotes: All quotes for the project, each tagged with a line item.
            expenses: All expenses for the project; untagged expenses are
                ignored here.

        Returns:
            One ``LineItemControlData`` per distinct line item id.
        """
        t0 = time.monotonic()
        logger.info("line_item_reconciliation_started", extra={
            "line_item_count": len(estimate_line_items),
            "quote_count": len(quotes),
            "expense_count": len(expenses),
        })

        line_items = unique_line_items(estimate_line_items)
        quotes_by_item = _group_by_line_item(quotes)
        expenses_by_item = _group_by_line_item(expenses)

        results = tuple(
            self._reconcile_one(
                item,
                quotes_by_item.get(item.id, []),
                expenses_by_item.get(item.id, []),
            )
            for item in line_items
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("line_item_reconciliation_completed", extra={
            "line_item_count": len(results),
            "over_quote_count": sum(
                1 for r in results if r.quote_status == QuoteStatus.OVER
            ),
            "duration_ms": duration_ms,
        })
        return results

    def _reconcile_one(
        self,
        item: EstimateLineItem,
        quotes: list[Quote],
        expenses: list[Expense],
    ) -> LineItemControlData:
        is_internal = self._policy.is_internal(item.category)
        accepted = tuple(q for q in quotes if q.is_accepted)
        quoted_cost = sum((q.total for q in accepted), _ZERO)
        allocated = sum((e.amount for e in expenses), _ZERO)

        cost = calculate_cost_variance(
            quoted_cost=quoted_cost, estimated_cost=item.estimated_cost,
        )
        spend = calculate_spend_variance(
            actual_amount=allocated,
            quoted_cost=quoted_cost,
            estimated_cost=item.estimated_cost,
        )
        quote_status = classify_quote_status(
            is_internal=is_internal,
            accepted_totals=[q.total for q in accepted],
            estimated_cost=item.estimated_cost,
            partial_threshold=self._policy.partial_quote_threshold,
        )
        allocation_status = classify_allocation_status(
            is_internal=is_internal,
            quoted_cost=quoted_cost,
            allocated_amount=allocated,
        )

        if quote_status == QuoteStatus.OVER:
            logger.debug("multiple_accepted_quotes", extra={
                "line_item_id": item.id,
                "quote_ids": [q.id for q in accepted],
            })

        return LineItemControlData(
            line_item_id=item.id,
            category=item.category_key,
            description=item.description,
            source=item.source,
            change_order_number=item.change_order_number,
            is_internal=is_internal,
            estimated_price=item.estimated_price,
            estimated_cost=item.estimated_cost,
            quotes=tuple(quotes),
            accepted_quotes=accepted,
            quoted_by=tuple(q.quoted_by for q in accepted if q.quoted_by),
            quoted_cost=quoted_cost,
            correlated_expenses=tuple(expenses),
            expense_count=len(expenses),
            allocated_amount=allocated,
            actual_amount=allocated,
            remaining_to_allocate=max(quoted_cost - allocated, _ZERO),
            cost_variance=cost.variance,
            cost_variance_percent=cost.variance_percent,
            baseline_cost=spend.baseline,
            spend_variance=spend.variance,
            spend_variance_percent=spend.variance_percent,
            completion_percent=spend.completion_percent,
            quote_status=quote_status,
            allocation_status=allocation_status,
        )
