"""
Module: lineitem_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    reconciliation engines.  This is the import surface for
    ``lineitem_services`` and the command line scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ``lineitem_kernel`` and ``lineitem_config.schema``.
    MUST NOT import ``lineitem_services``.

Invariants enforced:
    - Purity: engines never read the clock for results, touch storage, or
      keep state between calls.
    - Decimal-only arithmetic for every amount.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``lineitem_engines.tracer``), emitting LINEITEM_ENGINE_TRACE records
    with engine name, version, input fingerprint and duration.

Usage:
    from lineitem_engines import LineItemControlEngine, reconcile
    from lineitem_engines.export import to_export_rows, write_csv
"""

from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines")

from lineitem_engines.classification import (
    AllocationStatus,
    QuoteStatus,
    classify_allocation_status,
    classify_quote_status,
    is_internal_category,
)
from lineitem_engines.variance import (
    CostVariance,
    SpendVariance,
    baseline_cost,
    calculate_cost_variance,
    calculate_spend_variance,
    percent_of,
)
from lineitem_engines.reconciler import LineItemControlData, LineItemReconciler
from lineitem_engines.risk import RiskAssessment, RiskScorer
from lineitem_engines.summary import ReconciliationSummary, SummaryAggregator
from lineitem_engines.control import (
    LineItemControlEngine,
    ReconciliationResult,
    reconcile,
)

__all__ = [
    "AllocationStatus",
    "CostVariance",
    "LineItemControlData",
    "LineItemControlEngine",
    "LineItemReconciler",
    "QuoteStatus",
    "ReconciliationResult",
    "ReconciliationSummary",
    "RiskAssessment",
    "RiskScorer",
    "SpendVariance",
    "SummaryAggregator",
    "baseline_cost",
    "calculate_cost_variance",
    "calculate_spend_variance",
    "classify_allocation_status",
    "classify_quote_status",
    "is_internal_category",
    "percent_of",
    "reconcile",
]
