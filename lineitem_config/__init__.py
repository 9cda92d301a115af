"""
lineitem_config -- single public entrypoint for reconciliation policy.

Responsibility:
    Provides ``get_active_policy()``, the one way runtime code obtains a
    ``ReconciliationPolicy``.  The packaged default lives in
    ``lineitem_config/defaults/line_item_control.yaml``; callers may point
    at their own YAML file instead.

Architecture position:
    Configuration -- sits above ``lineitem_kernel`` and below
    ``lineitem_services``.  Engines import only ``lineitem_config.schema``
    and receive the policy as a parameter.

Failure modes:
    - ``ConfigurationError`` -- missing file, invalid YAML, bad threshold
      or non-numeric risk weight.

Audit relevance:
    Every policy load emits a ``LINEITEM_CONFIG_TRACE`` log entry carrying
    the policy version and the checksum of the source document, tying each
    reconciliation run to the exact thresholds that governed it.
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path

from lineitem_config.loader import compute_checksum, load_yaml_file, parse_policy
from lineitem_config.schema import ReconciliationPolicy, RiskWeights

_logger = logging.getLogger("lineitem_kernel.config")

DEFAULT_POLICY_PATH = Path(__file__).parent / "defaults" / "line_item_control.yaml"

__all__ = [
    "DEFAULT_POLICY_PATH",
    "ReconciliationPolicy",
    "RiskWeights",
    "get_active_policy",
]


def get_active_policy(config_path: Path | str | None = None) -> ReconciliationPolicy:
    """Return the reconciliation policy to run with.

    Args:
        config_path: YAML policy file.  Defaults to the packaged policy,
            which is loaded once and cached.

    Raises:
        ConfigurationError: If the file cannot be loaded or validated.
    """
    if config_path is None:
        return _default_policy()
    return _load_and_trace(Path(config_path))


@functools.lru_cache(maxsize=1)
def _default_policy() -> ReconciliationPolicy:
    return _load_and_trace(DEFAULT_POLICY_PATH)


def _load_and_trace(path: Path) -> ReconciliationPolicy:
    data = load_yaml_file(path)
    policy = parse_policy(data, str(path))

    _logger.info(
        "LINEITEM_CONFIG_TRACE",
        extra={
            "trace_type": "LINEITEM_CONFIG_TRACE",
            "config_path": str(path),
            "config_version": policy.version,
            "checksum": compute_checksum(data),
            "internal_categories": list(policy.internal_categories),
            "partial_quote_threshold": str(policy.partial_quote_threshold),
        },
    )
    return policy
