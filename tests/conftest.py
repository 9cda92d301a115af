"""
Pytest fixtures for the line-item cost control test suite.

Provides:
- Structured logging configured for every test session
- ``captured_logs`` for asserting on emitted JSON log records
- The default reconciliation policy

Record builders live next to the tests that use them (``_item()``,
``_quote()``, ``_expense()`` helpers) so hypothesis tests can share them
without function-scoped fixtures.
"""

import json
import logging
from io import StringIO

import pytest

from lineitem_config.schema import ReconciliationPolicy
from lineitem_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lineitem_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            reconcile(...)
            logs = captured_logs()
            assert any(r["message"] == "line_item_control_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lineitem_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Policy
# =============================================================================


@pytest.fixture
def policy() -> ReconciliationPolicy:
    return ReconciliationPolicy()


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow (large hypothesis runs)"
    )
