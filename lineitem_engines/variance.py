"""
lineitem_engines.variance -- Cost and spend variance for one line item.

Responsibility:
    Two separate deltas per line item:

    * cost variance  -- accepted quotes vs. the internal cost estimate
      ("did the vendor's committed price diverge from what we planned").
      This is the headline variance figure.
    * spend variance -- allocated actual spend vs. the baseline
      ("did actual spend diverge from the committed price").  Feeds risk
      scoring and the completion percentage, never the headline figure.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``cost_variance > 0`` if and only if ``quoted_cost > estimated_cost``.
    - Percentages are exactly ``Decimal("0")`` when the denominator is not
      positive.  This is a policy value, not a derived one.
    - Amounts are never rounded; percentages are quantized to four places
      (ROUND_HALF_UP) so repeated runs serialize identically.

Usage:
    from lineitem_engines.variance import calculate_cost_variance

    result = calculate_cost_variance(
        quoted_cost=Decimal("1200"), estimated_cost=Decimal("1000"),
    )
    result.variance          # Decimal("200")
    result.variance_percent  # Decimal("20.0000")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

PERCENT_QUANTUM = Decimal("0.0001")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def percent_of(numerator: Decimal, denominator: Decimal) -> Decimal:
    """``numerator / denominator x 100``, or 0 when the denominator is not positive."""
    if denominator <= _ZERO:
        return _ZERO
    return (numerator / denominator * _HUNDRED).quantize(
        PERCENT_QUANTUM, rounding=ROUND_HALF_UP
    )


def baseline_cost(quoted_cost: Decimal, estimated_cost: Decimal) -> Decimal:
    """Reference cost for progress and risk: quoted if any, else estimated."""
    return quoted_cost if quoted_cost > _ZERO else estimated_cost


@dataclass(frozen=True)
class CostVariance:
    """Accepted quotes vs. estimated cost.  Positive means quotes ran over."""

    quoted_cost: Decimal
    estimated_cost: Decimal
    variance: Decimal
    variance_percent: Decimal

    @property
    def is_over(self) -> bool:
        return self.variance > _ZERO

    @property
    def is_under(self) -> bool:
        return self.variance < _ZERO


@dataclass(frozen=True)
class SpendVariance:
    """Allocated actual spend vs. baseline cost."""

    actual_amount: Decimal
    baseline: Decimal
    variance: Decimal
    variance_percent: Decimal
    completion_percent: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.actual_amount > self.baseline


def calculate_cost_variance(
    *,
    quoted_cost: Decimal,
    estimated_cost: Decimal,
) -> CostVariance:
    """
    Calculate ``quoted_cost - estimated_cost`` and its percentage.

    The percentage divides by ``estimated_cost`` and is 0 when the estimate
    is 0 or negative.
    """
    variance = quoted_cost - estimated_cost
    return CostVariance(
        quoted_cost=quoted_cost,
        estimated_cost=estimated_cost,
        variance=variance,
        variance_percent=percent_of(variance, estimated_cost),
    )


def calculate_spend_variance(
    *,
    actual_amount: Decimal,
    quoted_cost: Decimal,
    estimated_cost: Decimal,
) -> SpendVariance:
    """Calculate actual spend against ``baseline_cost(quoted, estimated)``."""
    baseline = baseline_cost(quoted_cost, estimated_cost)
    variance = actual_amount - baseline
    return SpendVariance(
        actual_amount=actual_amount,
        baseline=baseline,
        variance=variance,
        variance_percent=percent_of(variance, baseline),
        completion_percent=percent_of(actual_amount, baseline),
    )
