"""
Typed Exception Hierarchy for line-item cost control.

Every error has a typed class, a machine-readable ``code`` class attribute,
and carries its context as structured attributes rather than only inside
the message string.  Callers catch by type and report by code:

    try:
        result = service.run(project_id)
    except SnapshotUnavailableError as e:
        api_response(code=e.code, project=e.project_id)

The reconciliation engine itself raises none of these.  It is total over
well-typed records; errors come from the boundaries around it (record
parsing, configuration loading, snapshot loading).

    LineItemControlError (base)
    |
    +-- RecordError
    |   +-- InvalidRecordError
    |
    +-- ConfigurationError
    |
    +-- SnapshotError
        +-- SnapshotUnavailableError
        +-- IncompleteSnapshotError
"""

from __future__ import annotations

from typing import Any


class LineItemControlError(Exception):
    """
    Base exception for all line-item cost control errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LINE_ITEM_CONTROL_ERROR"


# =============================================================================
# Record parsing
# =============================================================================


class RecordError(LineItemControlError):
    """Base exception for input record errors."""

    code: str = "RECORD_ERROR"


class InvalidRecordError(RecordError):
    """A supplied record field cannot be interpreted."""

    code: str = "INVALID_RECORD"

    def __init__(self, record_type: str, field: str, value: Any):
        self.record_type = record_type
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {record_type} field '{field}': {value!r}"
        )


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(LineItemControlError):
    """Reconciliation policy could not be loaded or failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, path: str | None, reason: str):
        self.path = path
        self.reason = reason
        location = f" ({path})" if path else ""
        super().__init__(f"Invalid reconciliation configuration{location}: {reason}")


# =============================================================================
# Snapshots
# =============================================================================


class SnapshotError(LineItemControlError):
    """Base exception for project snapshot errors."""

    code: str = "SNAPSHOT_ERROR"


class SnapshotUnavailableError(SnapshotError):
    """The data-access layer failed to supply a project snapshot."""

    code: str = "SNAPSHOT_UNAVAILABLE"

    def __init__(self, project_id: str, source: str, cause: str):
        self.project_id = project_id
        self.source = source
        self.cause = cause
        super().__init__(
            f"Failed to load {source} for project {project_id}: {cause}"
        )


class IncompleteSnapshotError(SnapshotError):
    """One or more snapshot inputs have not been loaded yet."""

    code: str = "INCOMPLETE_SNAPSHOT"

    def __init__(self, project_id: str, missing: tuple[str, ...]):
        self.project_id = project_id
        self.missing = missing
        super().__init__(
            f"Snapshot for project {project_id} is incomplete; "
            f"not loaded: {', '.join(missing)}"
        )
