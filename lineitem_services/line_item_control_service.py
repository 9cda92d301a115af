"""
LineItemControlService -- Service wrapper for line-item cost reconciliation.

Composes a ``ProjectSnapshotSource`` (I/O) with ``LineItemControlEngine``
(pure engine) and the active ``ReconciliationPolicy``.

Architecture: lineitem_services -- imperative shell.
    The service owns every failure mode that comes from data access.  The
    engine only runs once all three record sets are loaded; partial
    snapshots are rejected here, never inside the engine.
"""

from __future__ import annotations

import time
from uuid import uuid4

from lineitem_config import get_active_policy
from lineitem_config.schema import ReconciliationPolicy
from lineitem_engines.control import LineItemControlEngine, ReconciliationResult
from lineitem_kernel.exceptions import (
    IncompleteSnapshotError,
    LineItemControlError,
    SnapshotUnavailableError,
)
from lineitem_kernel.logging_config import LogContext, get_logger
from lineitem_services.snapshot import (
    ESTIMATE_LINE_ITEMS_KEY,
    EXPENSES_KEY,
    QUOTES_KEY,
    ProjectSnapshot,
    ProjectSnapshotSource,
)

logger = get_logger("services.line_item_control")


class LineItemControlService:
    """Service that loads a project snapshot and reconciles it.

    Contract:
        - ``load_snapshot()`` fetches all three record sets from the source.
        - ``reconcile_snapshot()`` runs the engine on a complete snapshot.
        - ``run()`` does both for one project.

    Non-goals:
        - Does NOT retry failed fetches (caller decides).
        - Does NOT persist results.
        - Does NOT modify any record (read-only).
    """

    def __init__(
        self,
        source: ProjectSnapshotSource,
        engine: LineItemControlEngine | None = None,
        policy: ReconciliationPolicy | None = None,
    ) -> None:
        self._source = source
        if engine is None:
            engine = LineItemControlEngine(policy or get_active_policy())
        self._engine = engine

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._engine.policy

    def load_snapshot(self, project_id: str) -> ProjectSnapshot:
        """Fetch estimate line items, quotes and expenses for a project.

        Raises:
            SnapshotUnavailableError: If the source fails for any collection.
                Record errors raised while parsing propagate unchanged.
        """
        fetchers = (
            (ESTIMATE_LINE_ITEMS_KEY, self._source.fetch_estimate_line_items),
            (QUOTES_KEY, self._source.fetch_quotes),
            (EXPENSES_KEY, self._source.fetch_expenses),
        )
        loaded = {}
        for name, fetch in fetchers:
            try:
                records = fetch(project_id)
            except LineItemControlError:
                raise
            except Exception as e:
                logger.error("snapshot_fetch_failed", extra={
                    "collection": name,
                    "error": str(e),
                })
                raise SnapshotUnavailableError(project_id, name, str(e)) from e
            loaded[name] = None if records is None else tuple(records)

        snapshot = ProjectSnapshot(
            project_id=project_id,
            estimate_line_items=loaded[ESTIMATE_LINE_ITEMS_KEY],
            quotes=loaded[QUOTES_KEY],
            expenses=loaded[EXPENSES_KEY],
        )
        logger.info("snapshot_loaded", extra={
            "complete": snapshot.is_complete,
            "missing": list(snapshot.missing),
        })
        return snapshot

    def reconcile_snapshot(self, snapshot: ProjectSnapshot) -> ReconciliationResult:
        """Run the engine over a fully loaded snapshot.

        Raises:
            IncompleteSnapshotError: If any collection is ``None``.
        """
        if not snapshot.is_complete:
            logger.warning("snapshot_incomplete", extra={
                "missing": list(snapshot.missing),
            })
            raise IncompleteSnapshotError(snapshot.project_id, snapshot.missing)

        return self._engine.reconcile(
            estimate_line_items=snapshot.estimate_line_items,
            quotes=snapshot.quotes,
            expenses=snapshot.expenses,
        )

    def run(self, project_id: str, run_id: str | None = None) -> ReconciliationResult:
        """Load and reconcile one project.

        Every log line of the run carries ``project_id`` and ``run_id`` (a
        fresh hex id unless one is given).
        """
        with LogContext.bind(project_id=project_id, run_id=run_id or uuid4().hex):
            t0 = time.monotonic()
            result = self.reconcile_snapshot(self.load_snapshot(project_id))
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("line_item_control_run_completed", extra={
                "line_item_count": result.summary.line_item_count,
                "total_unallocated": str(result.summary.total_unallocated),
                "duration_ms": duration_ms,
            })
            return result
