"""
lineitem_engines.classification -- Quote and allocation status for one line item.

Responsibility:
    Map a single line item's accepted quotes and allocated spend onto two
    closed enumerations: ``QuoteStatus`` (how well vendor commitments cover
    the estimate) and ``AllocationStatus`` (how much of the committed cost
    has been matched by explicitly allocated expenses).

Architecture position:
    Engines -- pure calculation layer, zero I/O, no dependencies on the
    rest of the engine package.

Invariants enforced:
    - Totality: every input maps to exactly one member of each enum.
    - Internal categories classify as ``internal`` regardless of quote or
      expense data.
    - Multiple accepted quotes always classify as ``over``, even when their
      sum matches the estimate; split or duplicate acceptance needs review.
    - For a fixed positive quoted cost, raising the allocated amount moves
      allocation status only along none -> partial -> full, and
      ``allocated == quoted`` is ``full``.

Quote coverage tolerance:
    With exactly one accepted quote, coverage is ``partial`` when its total
    is below ``estimated_cost x partial_quote_threshold`` (default 0.8) and
    ``full`` otherwise, including totals above the estimate.  A zero
    estimate is always fully covered by a single accepted quote.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from enum import Enum

from lineitem_config.schema import ReconciliationPolicy

DEFAULT_PARTIAL_QUOTE_THRESHOLD = Decimal("0.8")

_DEFAULT_POLICY = ReconciliationPolicy()


class QuoteStatus(str, Enum):
    """Vendor quote coverage of a line item."""

    INTERNAL = "internal"  # Internal labor / management, no vendor pricing
    NONE = "none"  # External, no accepted quote
    PARTIAL = "partial"  # One accepted quote below the coverage threshold
    FULL = "full"  # One accepted quote covering the estimate
    OVER = "over"  # More than one accepted quote


class AllocationStatus(str, Enum):
    """Explicit expense allocation against the committed (quoted) cost."""

    INTERNAL = "internal"  # Not tracked against a quote
    NOT_QUOTED = "not_quoted"  # Nothing committed to allocate against
    NONE = "none"  # Committed, nothing allocated yet
    PARTIAL = "partial"  # 0 < allocated < quoted
    FULL = "full"  # allocated >= quoted


def is_internal_category(
    category: str,
    policy: ReconciliationPolicy | None = None,
) -> bool:
    """True when the category carries no external vendor pricing."""
    return (policy or _DEFAULT_POLICY).is_internal(category)


def classify_quote_status(
    *,
    is_internal: bool,
    accepted_totals: Sequence[Decimal],
    estimated_cost: Decimal,
    partial_threshold: Decimal = DEFAULT_PARTIAL_QUOTE_THRESHOLD,
) -> QuoteStatus:
    """
    Classify quote coverage for one line item.

    Args:
        is_internal: Whether the line item's category is internal.
        accepted_totals: ``total`` of every accepted quote for the item.
        estimated_cost: The item's internal cost estimate.
        partial_threshold: Fraction of the estimate a single accepted quote
            must reach to count as full coverage.
    """
    if is_internal:
        return QuoteStatus.INTERNAL
    if not accepted_totals:
        return QuoteStatus.NONE
    if len(accepted_totals) > 1:
        return QuoteStatus.OVER
    if accepted_totals[0] < estimated_cost * partial_threshold:
        return QuoteStatus.PARTIAL
    return QuoteStatus.FULL


def classify_allocation_status(
    *,
    is_internal: bool,
    quoted_cost: Decimal,
    allocated_amount: Decimal,
) -> AllocationStatus:
    """
    Classify expense allocation for one line item.

    An external item with no committed cost (``quoted_cost <= 0``) is
    ``not_quoted``: allocation cannot be assessed without a commitment.
    """
    if is_internal:
        return AllocationStatus.INTERNAL
    if quoted_cost <= Decimal("0"):
        return AllocationStatus.NOT_QUOTED
    if allocated_amount <= Decimal("0"):
        return AllocationStatus.NONE
    if allocated_amount < quoted_cost:
        return AllocationStatus.PARTIAL
    return AllocationStatus.FULL
