"""
Reconciliation policy schema.

Frozen dataclasses holding every tunable of the line-item control engine.
YAML documents are parsed into these types by the loader; the engine only
ever sees the dataclasses.

Two groups are kept apart on purpose:
  ReconciliationPolicy = what the numbers mean (internal categories,
                         quote coverage threshold)
  RiskWeights          = what looks urgent (display ordering only)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

DEFAULT_INTERNAL_CATEGORIES: tuple[str, ...] = ("labor_internal", "management")

DEFAULT_CATEGORY_LABELS: tuple[tuple[str, str], ...] = (
    ("labor_internal", "Labor (Internal)"),
    ("management", "Management"),
    ("subcontractors", "Subcontractor"),
    ("materials", "Materials"),
    ("equipment", "Equipment"),
    ("permits", "Permits & Fees"),
    ("other", "Other"),
)


@dataclass(frozen=True)
class RiskWeights:
    """Additive risk score constants.  Presentation ordering only."""

    over_budget_base: Decimal = Decimal("100")
    committed_no_spend: Decimal = Decimal("50")
    unquoted_external: Decimal = Decimal("30")
    partial_allocation: Decimal = Decimal("20")
    internal_adjustment: Decimal = Decimal("-10")


@dataclass(frozen=True)
class ReconciliationPolicy:
    """Policy governing classification and risk ranking."""

    version: str = "1.0"
    internal_categories: tuple[str, ...] = DEFAULT_INTERNAL_CATEGORIES
    # Single accepted quote below estimated_cost x threshold is "partial".
    partial_quote_threshold: Decimal = Decimal("0.8")
    risk_weights: RiskWeights = field(default_factory=RiskWeights)
    category_labels: tuple[tuple[str, str], ...] = DEFAULT_CATEGORY_LABELS

    def is_internal(self, category: str) -> bool:
        """True for categories with no external vendor pricing."""
        return str(getattr(category, "value", category)) in self.internal_categories

    def label_for(self, category: str) -> str:
        """Display label for a category; unknown categories show as-is."""
        key = str(getattr(category, "value", category))
        for name, label in self.category_labels:
            if name == key:
                return label
        return key
