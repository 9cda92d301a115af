"""
Project snapshots and the sources that supply them.

A snapshot is the three record sets the engine joins, for one project.
Each collection is either a tuple (possibly empty, which is a valid
fully-loaded state) or ``None`` when that input has not been loaded.

``ProjectSnapshotSource`` is the data-access seam.  Storage-backed sources
live outside this package; ``FileSnapshotSource`` reads a YAML or JSON
export and is what the command line uses.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from lineitem_kernel.domain.parsing import (
    parse_estimate_line_items,
    parse_expenses,
    parse_quotes,
)
from lineitem_kernel.domain.records import EstimateLineItem, Expense, Quote
from lineitem_kernel.logging_config import get_logger

logger = get_logger("services.snapshot")

ESTIMATE_LINE_ITEMS_KEY = "estimate_line_items"
QUOTES_KEY = "quotes"
EXPENSES_KEY = "expenses"


@runtime_checkable
class ProjectSnapshotSource(Protocol):
    """Supplies immutable record sets for a project.

    A method may return ``None`` to signal that the collection is not
    available yet.  Failures are raised; the service wraps them.
    """

    def fetch_estimate_line_items(self, project_id: str) -> Sequence[EstimateLineItem] | None: ...

    def fetch_quotes(self, project_id: str) -> Sequence[Quote] | None: ...

    def fetch_expenses(self, project_id: str) -> Sequence[Expense] | None: ...


@dataclass(frozen=True)
class ProjectSnapshot:
    """Everything the engine needs for one project."""

    project_id: str
    estimate_line_items: tuple[EstimateLineItem, ...] | None
    quotes: tuple[Quote, ...] | None
    expenses: tuple[Expense, ...] | None

    @property
    def missing(self) -> tuple[str, ...]:
        """Names of the collections that have not been loaded."""
        names = []
        if self.estimate_line_items is None:
            names.append(ESTIMATE_LINE_ITEMS_KEY)
        if self.quotes is None:
            names.append(QUOTES_KEY)
        if self.expenses is None:
            names.append(EXPENSES_KEY)
        return tuple(names)

    @property
    def is_complete(self) -> bool:
        return not self.missing


def _belongs_to(record: Any, project_id: str) -> bool:
    """Records without a project id are assumed to belong to the project."""
    return not record.project_id or record.project_id == project_id


class FileSnapshotSource:
    """
    Read project records from a YAML or JSON document.

    Expected shape::

        estimate_line_items: [ {...}, ... ]
        quotes:              [ {...}, ... ]
        expenses:            [ {...}, ... ]

    A key that is absent means that collection is not loaded.  Records
    carrying a different ``project_id`` are filtered out.  The document is
    read once and cached.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._document: dict[str, Any] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._document is None:
            with open(self._path) as f:
                if self._path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
            if not isinstance(data, Mapping):
                raise ValueError(f"{self._path}: top level must be a mapping")
            self._document = dict(data)
            logger.debug("snapshot_document_loaded", extra={
                "path": str(self._path),
                "keys": sorted(self._document),
            })
        return self._document

    def _rows(self, key: str) -> list[Mapping[str, Any]] | None:
        document = self._load()
        if key not in document:
            return None
        rows = document[key] or []
        if not isinstance(rows, list):
            raise ValueError(f"{self._path}: '{key}' must be a list")
        return rows

    def fetch_estimate_line_items(self, project_id: str) -> tuple[EstimateLineItem, ...] | None:
        rows = self._rows(ESTIMATE_LINE_ITEMS_KEY)
        if rows is None:
            return None
        return tuple(r for r in parse_estimate_line_items(rows) if _belongs_to(r, project_id))

    def fetch_quotes(self, project_id: str) -> tuple[Quote, ...] | None:
        rows = self._rows(QUOTES_KEY)
        if rows is None:
            return None
        return tuple(r for r in parse_quotes(rows) if _belongs_to(r, project_id))

    def fetch_expenses(self, project_id: str) -> tuple[Expense, ...] | None:
        rows = self._rows(EXPENSES_KEY)
        if rows is None:
            return None
        return tuple(r for r in parse_expenses(rows) if _belongs_to(r, project_id))
