"""
Tests for LineItemControlService.

Uses an in-memory source so the service's failure handling can be driven
directly: fetch errors, not-yet-loaded collections, and record errors.
"""

from decimal import Decimal

import pytest

from lineitem_config.schema import ReconciliationPolicy
from lineitem_engines.control import LineItemControlEngine
from lineitem_kernel.domain.records import (
    EstimateLineItem,
    Expense,
    LineItemCategory,
    Quote,
    QuoteState,
)
from lineitem_kernel.exceptions import (
    IncompleteSnapshotError,
    InvalidRecordError,
    SnapshotUnavailableError,
)
from lineitem_kernel.logging_config import LogContext
from lineitem_services import LineItemControlService, ProjectSnapshot, ProjectSnapshotSource


class _InMemorySource:
    """Snapshot source backed by dicts keyed by project id."""

    def __init__(self, items=None, quotes=None, expenses=None, fail_on=None, error=None):
        self.items = items or {}
        self.quotes = quotes or {}
        self.expenses = expenses or {}
        self.fail_on = fail_on
        self.error = error or ConnectionError("storage unavailable")
        self.calls: list[tuple[str, str]] = []

    def _get(self, name, store, project_id):
        self.calls.append((name, project_id))
        if self.fail_on == name:
            raise self.error
        return store.get(project_id)

    def fetch_estimate_line_items(self, project_id):
        return self._get("estimate_line_items", self.items, project_id)

    def fetch_quotes(self, project_id):
        return self._get("quotes", self.quotes, project_id)

    def fetch_expenses(self, project_id):
        return self._get("expenses", self.expenses, project_id)


def _loaded_source(**kwargs):
    return _InMemorySource(
        items={"P-1": [
            EstimateLineItem(id="LI-1", project_id="P-1", category=LineItemCategory.SUBCONTRACTORS,
                             estimated_cost=Decimal("1000")),
        ]},
        quotes={"P-1": [
            Quote(id="Q1", line_item_id="LI-1", total=Decimal("1200"), status=QuoteState.ACCEPTED),
        ]},
        expenses={"P-1": [
            Expense(id="E1", amount=Decimal("600"), line_item_id="LI-1"),
            Expense(id="E2", amount=Decimal("50")),
        ]},
        **kwargs,
    )


@pytest.fixture
def service():
    return LineItemControlService(_loaded_source(), policy=ReconciliationPolicy())


class TestRun:
    """Happy path."""

    def test_run_reconciles(self, service):
        result = service.run("P-1")
        assert result.summary.total_allocated == Decimal("600")
        assert result.summary.total_unallocated == Decimal("50")
        assert result.line_items[0].quoted_cost == Decimal("1200")

    def test_source_satisfies_protocol(self):
        assert isinstance(_loaded_source(), ProjectSnapshotSource)

    def test_empty_collections_are_valid(self):
        source = _InMemorySource(items={"P-2": []}, quotes={"P-2": []}, expenses={"P-2": []})
        result = LineItemControlService(source).run("P-2")
        assert result.line_items == ()
        assert result.summary.total_expenses == Decimal("0")

    def test_project_bound_to_log_context(self, service, captured_logs):
        service.run("P-1")
        records = captured_logs()
        completed = [r for r in records if r["message"] == "line_item_control_run_completed"]
        assert completed and completed[0]["project_id"] == "P-1"
        assert all(r.get("project_id") == "P-1" for r in records
                   if r["message"] == "LINEITEM_ENGINE_TRACE")
        assert "project_id" not in LogContext.get_all()

    def test_run_id_on_every_record(self, service, captured_logs):
        service.run("P-1", run_id="run-7")
        records = captured_logs()
        assert records
        assert {r.get("run_id") for r in records} == {"run-7"}
        assert LogContext.get_all() == {}

    def test_run_id_generated_per_run(self, service, captured_logs):
        service.run("P-1")
        service.run("P-1")
        completed = [r for r in captured_logs() if r["message"] == "line_item_control_run_completed"]
        assert len(completed) == 2
        assert completed[0]["run_id"] != completed[1]["run_id"]

    def test_default_policy_used_when_none_given(self):
        service = LineItemControlService(_loaded_source())
        assert service.policy == ReconciliationPolicy()

    def test_custom_engine(self):
        engine = LineItemControlEngine(ReconciliationPolicy(version="9"))
        service = LineItemControlService(_loaded_source(), engine=engine)
        assert service.policy.version == "9"


class TestLoadSnapshot:
    """Snapshot loading and failure wrapping."""

    def test_snapshot_contents(self, service):
        snapshot = service.load_snapshot("P-1")
        assert snapshot.project_id == "P-1"
        assert len(snapshot.estimate_line_items) == 1
        assert len(snapshot.expenses) == 2
        assert snapshot.is_complete
        assert isinstance(snapshot.quotes, tuple)

    def test_fetch_failure_wrapped(self, captured_logs):
        service = LineItemControlService(_loaded_source(fail_on="quotes"))
        with pytest.raises(SnapshotUnavailableError) as exc_info:
            service.load_snapshot("P-1")

        exc = exc_info.value
        assert exc.project_id == "P-1"
        assert exc.source == "quotes"
        assert "storage unavailable" in exc.cause
        assert isinstance(exc.__cause__, ConnectionError)
        assert any(r["message"] == "snapshot_fetch_failed" for r in captured_logs())

    def test_record_errors_propagate_unwrapped(self):
        error = InvalidRecordError("expense", "amount", "abc")
        service = LineItemControlService(_loaded_source(fail_on="expenses", error=error))
        with pytest.raises(InvalidRecordError):
            service.load_snapshot("P-1")

    def test_unknown_project_is_not_loaded(self, service):
        snapshot = service.load_snapshot("P-404")
        assert snapshot.missing == ("estimate_line_items", "quotes", "expenses")


class TestIncompleteSnapshot:
    """The engine never runs on partial input."""

    def test_missing_collection_raises(self):
        source = _InMemorySource(items={"P-3": []}, expenses={"P-3": []})
        service = LineItemControlService(source)
        with pytest.raises(IncompleteSnapshotError) as exc_info:
            service.run("P-3")
        assert exc_info.value.missing == ("quotes",)

    def test_reconcile_snapshot_rejects_none(self, service):
        snapshot = ProjectSnapshot(
            project_id="P-1", estimate_line_items=(), quotes=None, expenses=None,
        )
        with pytest.raises(IncompleteSnapshotError) as exc_info:
            service.reconcile_snapshot(snapshot)
        assert exc_info.value.missing == ("quotes", "expenses")

    def test_engine_not_invoked(self, captured_logs):
        source = _InMemorySource(items={"P-3": []})
        with pytest.raises(IncompleteSnapshotError):
            LineItemControlService(source).run("P-3")
        assert not any(r["message"] == "line_item_control_started" for r in captured_logs())
