"""
lineitem_engines.tracer -- LINEITEM_ENGINE_TRACE records for engine entry points.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and, after it returns,
    logs one trace record: engine name and version, a fingerprint of the
    input snapshot, how many records each fingerprinted input held, and
    the duration.  Two runs over the same estimate, quotes and expenses
    share a fingerprint, so repeated reconciliations can be matched in the
    logs.

Invariants enforced:
    - Fingerprints depend only on the values of the named keyword inputs.
      Records are reduced field by field; enums by value, so a category
      given as ``LineItemCategory.MATERIALS`` or ``"materials"`` hashes
      the same.  Mapping key order is irrelevant, sequence order is not.
    - The decorator never touches inputs or the return value.

Usage:
    @traced_engine("reconciler", "1.0",
                   fingerprint_fields=("estimate_line_items", "quotes", "expenses"))
    def reconcile_line_items(self, *, estimate_line_items, quotes, expenses):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from lineitem_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "LINEITEM_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, str):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}{{{body}}}"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """SHA-256 over the named inputs, first 16 hex chars.

    A field missing from ``kwargs`` hashes the same as ``None``.
    """
    canonical = "|".join(
        f"{field}={_canonicalize(kwargs.get(field))}" for field in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _record_counts(
    fingerprint_fields: tuple[str, ...], kwargs: dict[str, Any],
) -> dict[str, int]:
    return {
        field: len(kwargs[field])
        for field in fingerprint_fields
        if isinstance(kwargs.get(field), (list, tuple))
    }


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits LINEITEM_ENGINE_TRACE for an engine invocation.

    Args:
        engine_name: Engine identifier (e.g., "reconciler").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Keyword argument names that make up the
            input snapshot.  Engines are called with keyword arguments.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = compute_input_fingerprint(fingerprint_fields, kwargs) if fingerprint_fields else ""

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            logger.info(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fp,
                "record_counts": _record_counts(fingerprint_fields, kwargs),
                "duration_ms": duration_ms,
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
