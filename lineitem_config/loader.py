"""
Configuration Loader (``lineitem_config.loader``).

Responsibility
--------------
Loads a YAML policy document and parses it into the frozen
``lineitem_config.schema`` dataclasses.  Runtime callers go through
``lineitem_config.get_active_policy()``; this module is the parsing layer
underneath it.

Invariants enforced
-------------------
* Every parse failure raises ``ConfigurationError`` naming the file and
  the offending key; there are no silent fallbacks for present-but-invalid
  values.
* Sections that are absent fall back to the schema defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from lineitem_config.schema import (
    DEFAULT_CATEGORY_LABELS,
    DEFAULT_INTERNAL_CATEGORIES,
    ReconciliationPolicy,
    RiskWeights,
)
from lineitem_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file is missing, is not valid YAML, or
            does not contain a mapping at the top level.
    """
    if not path.exists():
        raise ConfigurationError(str(path), "file not found")
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _decimal(value: Any, key: str, path: str | None) -> Decimal:
    if isinstance(value, bool):
        raise ConfigurationError(path, f"{key} must be numeric, got {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ConfigurationError(path, f"{key} must be numeric, got {value!r}") from e
    if not result.is_finite():
        raise ConfigurationError(path, f"{key} must be finite, got {value!r}")
    return result


def parse_risk_weights(data: dict[str, Any], path: str | None = None) -> RiskWeights:
    """Parse ``RiskWeights``; missing keys keep their defaults."""
    defaults = RiskWeights()
    values = {}
    for name in (
        "over_budget_base",
        "committed_no_spend",
        "unquoted_external",
        "partial_allocation",
        "internal_adjustment",
    ):
        raw = data.get(name)
        values[name] = (
            getattr(defaults, name) if raw is None
            else _decimal(raw, f"risk_weights.{name}", path)
        )
    return RiskWeights(**values)


def parse_policy(data: dict[str, Any], path: str | None = None) -> ReconciliationPolicy:
    """
    Parse a ``ReconciliationPolicy`` from a dict.

    Raises:
        ConfigurationError: if a section has the wrong shape or the quote
            threshold falls outside ``(0, 1]``.
    """
    classification = data.get("classification") or {}
    if not isinstance(classification, dict):
        raise ConfigurationError(path, "classification must be a mapping")

    raw_internal = classification.get("internal_categories")
    if raw_internal is None:
        internal = DEFAULT_INTERNAL_CATEGORIES
    elif isinstance(raw_internal, list):
        internal = tuple(str(c) for c in raw_internal)
    else:
        raise ConfigurationError(path, "classification.internal_categories must be a list")

    raw_threshold = classification.get("partial_quote_threshold")
    threshold = (
        ReconciliationPolicy().partial_quote_threshold if raw_threshold is None
        else _decimal(raw_threshold, "classification.partial_quote_threshold", path)
    )
    if not Decimal("0") < threshold <= Decimal("1"):
        raise ConfigurationError(
            path, f"classification.partial_quote_threshold must be in (0, 1], got {threshold}"
        )

    raw_weights = data.get("risk_weights") or {}
    if not isinstance(raw_weights, dict):
        raise ConfigurationError(path, "risk_weights must be a mapping")

    raw_labels = data.get("category_labels")
    if raw_labels is None:
        labels = DEFAULT_CATEGORY_LABELS
    elif isinstance(raw_labels, dict):
        labels = tuple((str(k), str(v)) for k, v in raw_labels.items())
    else:
        raise ConfigurationError(path, "category_labels must be a mapping")

    return ReconciliationPolicy(
        version=str(data.get("version", ReconciliationPolicy().version)),
        internal_categories=internal,
        partial_quote_threshold=threshold,
        risk_weights=parse_risk_weights(raw_weights, path),
        category_labels=labels,
    )


def load_policy(path: Path) -> ReconciliationPolicy:
    """Load and parse a policy YAML file."""
    return parse_policy(load_yaml_file(path), str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
