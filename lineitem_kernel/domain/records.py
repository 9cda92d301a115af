"""
Line-item control records -- immutable snapshots of the three record sets.

Responsibility:
    Frozen dataclass value objects for estimate line items, vendor quotes,
    and expenses.  These are the only inputs the reconciliation engine
    accepts.

Architecture position:
    Kernel > Domain -- pure data definitions, zero I/O.
    Populated by a data-access layer (see ``lineitem_kernel.domain.parsing``
    and ``lineitem_services``), consumed by ``lineitem_engines``.

Invariants enforced:
    - All records are ``frozen=True``; a changed estimate is a new record,
      never a mutated one.
    - All monetary fields are ``Decimal`` (never float); missing amounts
      default to ``Decimal("0")``.
    - Categories outside ``LineItemCategory`` are kept as plain strings so
      unknown categories never abort a reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class LineItemCategory(str, Enum):
    """Cost category of an estimate line item."""

    LABOR_INTERNAL = "labor_internal"
    MANAGEMENT = "management"
    SUBCONTRACTORS = "subcontractors"
    MATERIALS = "materials"
    EQUIPMENT = "equipment"
    PERMITS = "permits"
    OTHER = "other"


class LineItemSource(str, Enum):
    """Where a line item came from."""

    ESTIMATE = "estimate"
    CHANGE_ORDER = "change_order"


class QuoteState(str, Enum):
    """Lifecycle state of a vendor quote."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


@dataclass(frozen=True)
class EstimateLineItem:
    """
    One planned row of a project estimate.

    ``estimated_price`` is the client-facing amount; ``estimated_cost`` is
    the internal cost (quantity x cost per unit).
    """

    id: str
    project_id: str
    category: str
    description: str = ""
    estimated_price: Decimal = Decimal("0")
    estimated_cost: Decimal = Decimal("0")
    quantity: Decimal = Decimal("0")
    cost_per_unit: Decimal = Decimal("0")
    source: LineItemSource = LineItemSource.ESTIMATE
    change_order_number: str | None = None

    @property
    def category_key(self) -> str:
        """Category as a plain string, whether or not it is a known member."""
        if isinstance(self.category, LineItemCategory):
            return self.category.value
        return str(self.category)

    @property
    def is_change_order(self) -> bool:
        return self.source == LineItemSource.CHANGE_ORDER


@dataclass(frozen=True)
class Quote:
    """
    A vendor quote scoped to one estimate line item.

    Many quotes may reference the same line item (competing bids).  Only
    accepted quotes count toward committed cost.
    """

    id: str
    line_item_id: str | None
    quoted_by: str = ""
    quote_number: str = ""
    total: Decimal = Decimal("0")
    status: QuoteState = QuoteState.PENDING
    includes_labor: bool = False
    includes_materials: bool = False
    project_id: str | None = None

    @property
    def is_accepted(self) -> bool:
        return self.status == QuoteState.ACCEPTED


@dataclass(frozen=True)
class Expense:
    """
    An append-only record of money actually paid.

    ``line_item_id`` is the explicit allocation link.  ``None`` means the
    expense is unallocated.
    """

    id: str
    amount: Decimal = Decimal("0")
    expense_date: date | None = None
    payee_id: str | None = None
    payee_name: str = ""
    description: str = ""
    transaction_type: str = "expense"
    line_item_id: str | None = None
    project_id: str | None = None
    is_split: bool = False

    @property
    def is_allocated(self) -> bool:
        return bool(self.line_item_id)
