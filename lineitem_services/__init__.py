"""
lineitem_services -- Package init and public API.

Responsibility:
    Imperative shell around the pure engines: load project snapshots from a
    data source, reject incomplete ones, run the reconciliation, and attach
    the project to the log context.  This is the only layer that performs
    I/O.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction:
        lineitem_services/ -> lineitem_engines/  (allowed)
        lineitem_services/ -> lineitem_config/   (allowed)
        lineitem_services/ -> lineitem_kernel/   (allowed)
        lineitem_engines/  -> lineitem_services/ (FORBIDDEN)
        lineitem_kernel/   -> lineitem_services/ (FORBIDDEN)
"""

from lineitem_kernel.logging_config import get_logger

logger = get_logger("services")

from lineitem_services.snapshot import (
    FileSnapshotSource,
    ProjectSnapshot,
    ProjectSnapshotSource,
)
from lineitem_services.line_item_control_service import LineItemControlService

__all__ = [
    "FileSnapshotSource",
    "LineItemControlService",
    "ProjectSnapshot",
    "ProjectSnapshotSource",
]
