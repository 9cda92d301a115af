"""
lineitem_engines.control -- Single entry point for line-item cost reconciliation.

Responsibility:
    Run reconciler, summary aggregator and risk scorer over one project's
    snapshot and return the combined ``ReconciliationResult``.  Consumers
    (CLI, export, presentation) read this structure only and never
    recompute sums themselves.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Called by
    ``lineitem_services`` once all three record sets are loaded.

Invariants enforced:
    - Idempotence: ``reconcile(X) == reconcile(X)`` for any fixed input.
    - Empty inputs are valid; an empty project yields an empty result with
      zero totals.
    - Risk scores are attached for ordering only and never alter amounts.

Usage:
    from lineitem_engines.control import reconcile

    result = reconcile(
        estimate_line_items=items, quotes=quotes, expenses=expenses,
    )
    result.summary.total_unallocated
    for item in result.ranked_by_risk():
        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from lineitem_config.schema import ReconciliationPolicy
from lineitem_engines.reconciler import (
    LineItemControlData,
    LineItemReconciler,
    repeated_expense_ids,
)
from lineitem_engines.risk import RiskAssessment, RiskScorer
from lineitem_engines.summary import ReconciliationSummary, SummaryAggregator
from lineitem_engines.tracer import traced_engine
from lineitem_kernel.domain.records import EstimateLineItem, Expense, Quote
from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines.control")


@dataclass(frozen=True)
class ReconciliationResult:
    """Per-item reconciliation plus project summary and risk scores."""

    line_items: tuple[LineItemControlData, ...]
    summary: ReconciliationSummary
    risk: tuple[RiskAssessment, ...]

    def risk_for(self, line_item_id: str) -> RiskAssessment | None:
        for assessment in self.risk:
            if assessment.line_item_id == line_item_id:
                return assessment
        return None

    def ranked_by_risk(self) -> tuple[LineItemControlData, ...]:
        """Line items by descending risk score; ties keep estimate order."""
        pairs = sorted(
            zip(self.line_items, self.risk),
            key=lambda pair: pair[1].score,
            reverse=True,
        )
        return tuple(item for item, _ in pairs)


class LineItemControlEngine:
    """
    Reconcile estimate, quote and expense snapshots for one project.

    Contract:
        No I/O, fully deterministic.  The policy supplies internal
        categories, the quote coverage threshold and risk weights.
    Guarantees:
        - One ``LineItemControlData`` per distinct estimate line item,
          in estimate order.
        - ``risk[i]`` scores ``line_items[i]``.
        - Summary conservation: allocated + unallocated = all expenses.
    """

    def __init__(self, policy: ReconciliationPolicy | None = None) -> None:
        self._policy = policy or ReconciliationPolicy()
        self._reconciler = LineItemReconciler(self._policy)
        self._aggregator = SummaryAggregator()
        self._scorer = RiskScorer(self._policy.risk_weights)

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    @traced_engine(
        "line_item_control", "1.0",
        fingerprint_fields=("estimate_line_items", "quotes", "expenses"),
    )
    def reconcile(
        self,
        *,
        estimate_line_items: Sequence[EstimateLineItem],
        quotes: Sequence[Quote],
        expenses: Sequence[Expense],
    ) -> ReconciliationResult:
        logger.info("line_item_control_started", extra={
            "policy_version": self._policy.version,
            "line_item_count": len(estimate_line_items),
            "quote_count": len(quotes),
            "expense_count": len(expenses),
        })

        repeated = repeated_expense_ids(expenses)
        if repeated:
            logger.warning("repeated_expense_ids", extra={
                "expense_ids": list(repeated),
            })

        line_items = self._reconciler.reconcile_line_items(
            estimate_line_items=estimate_line_items,
            quotes=quotes,
            expenses=expenses,
        )
        summary = self._aggregator.summarize(
            line_items=line_items, expenses=expenses,
        )
        risk = self._scorer.assess_all(line_items)

        logger.info("line_item_control_completed", extra={
            "line_item_count": summary.line_item_count,
            "total_estimated_cost": str(summary.total_estimated_cost),
            "total_quoted": str(summary.total_quoted),
            "total_allocated": str(summary.total_allocated),
            "total_unallocated": str(summary.total_unallocated),
            "line_items_over_budget": summary.line_items_over_budget,
        })
        return ReconciliationResult(line_items=line_items, summary=summary, risk=risk)


def reconcile(
    *,
    estimate_line_items: Sequence[EstimateLineItem],
    quotes: Sequence[Quote],
    expenses: Sequence[Expense],
    policy: ReconciliationPolicy | None = None,
) -> ReconciliationResult:
    """Reconcile one project's snapshot with ``policy`` (defaults if omitted)."""
    return LineItemControlEngine(policy).reconcile(
        estimate_line_items=estimate_line_items,
        quotes=quotes,
        expenses=expenses,
    )
