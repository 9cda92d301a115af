"""
lineitem_engines.risk -- Attention score for reconciled line items.

Responsibility:
    Assign each ``LineItemControlData`` an additive score saying how urgently
    it needs a human look, and order line items by that score.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Reads reconciler output
    and ``RiskWeights`` from the policy.  Scores are for display ordering
    only and never feed back into any reconciled amount.

Scoring (default weights):
    over budget (actual > baseline)        +100 + over-percent
    external, quoted cost > 0, no spend    +50
    external, no accepted quote            +30
    partial allocation                     +20
    internal category                      -10

    Over-percent is ``(actual - baseline) / baseline x 100`` and 0 when the
    baseline is 0, so a worse overrun always outranks a milder one.

Invariants enforced:
    - Deterministic: identical items always score identically.
    - ``rank`` sorts by descending score; ties keep input order.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from lineitem_config.schema import RiskWeights
from lineitem_engines.classification import AllocationStatus, QuoteStatus
from lineitem_engines.reconciler import LineItemControlData
from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines.risk")

_ZERO = Decimal("0")

REASON_OVER_BUDGET = "over_budget"
REASON_COMMITTED_NO_SPEND = "committed_no_spend"
REASON_UNQUOTED = "unquoted_external"
REASON_PARTIAL_ALLOCATION = "partial_allocation"
REASON_INTERNAL = "internal"


@dataclass(frozen=True)
class RiskAssessment:
    """Score for one line item plus the rules that contributed to it."""

    line_item_id: str
    score: Decimal
    reasons: tuple[str, ...] = ()


class RiskScorer:
    """Additive risk scorer.  Weights come from ``RiskWeights``."""

    def __init__(self, weights: RiskWeights | None = None) -> None:
        self._weights = weights or RiskWeights()

    def assess(self, item: LineItemControlData) -> RiskAssessment:
        w = self._weights
        score = _ZERO
        reasons: list[str] = []

        if item.is_over_budget:
            score += w.over_budget_base + item.spend_variance_percent
            reasons.append(REASON_OVER_BUDGET)

        if (
            not item.is_internal
            and item.quoted_cost > _ZERO
            and item.actual_amount == _ZERO
        ):
            score += w.committed_no_spend
            reasons.append(REASON_COMMITTED_NO_SPEND)

        if item.quote_status == QuoteStatus.NONE:
            score += w.unquoted_external
            reasons.append(REASON_UNQUOTED)

        if item.allocation_status == AllocationStatus.PARTIAL:
            score += w.partial_allocation
            reasons.append(REASON_PARTIAL_ALLOCATION)

        if item.is_internal:
            score += w.internal_adjustment
            reasons.append(REASON_INTERNAL)

        return RiskAssessment(
            line_item_id=item.line_item_id,
            score=score,
            reasons=tuple(reasons),
        )

    def assess_all(
        self, items: Sequence[LineItemControlData]
    ) -> tuple[RiskAssessment, ...]:
        return tuple(self.assess(item) for item in items)

    def rank(
        self, items: Sequence[LineItemControlData]
    ) -> tuple[tuple[LineItemControlData, RiskAssessment], ...]:
        """Pair each item with its assessment, highest score first.

        ``sorted`` is stable, so equal scores keep their input order.
        """
        pairs = [(item, self.assess(item)) for item in items]
        ranked = sorted(pairs, key=lambda pair: pair[1].score, reverse=True)
        if ranked:
            logger.debug("risk_ranking_completed", extra={
                "line_item_count": len(ranked),
                "top_line_item_id": ranked[0][1].line_item_id,
                "top_score": str(ranked[0][1].score),
            })
        return tuple(ranked)
