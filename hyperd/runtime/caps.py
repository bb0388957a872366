"""
Module: hyperd/runtime/caps.py
Summary: Cross-domain query normalization and cap enforcement.
Inputs: raw query params {source, entity, target, hops} (strings or ints)
Outputs: QueryCaps with reasons (clamps applied)
Related: hyperd/graph/paths.py, hyperd/runtime/orchestrator.py
Boundary: caps never exceed configured bounds; hops are only clamped downward
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from ..config import HyperdConfig


@dataclass(slots=True)
class QueryCaps:
    source_domain: str
    source_entity: str
    target_domain: str
    max_hops: int
    max_paths: int


def normalize_query(
    params: Mapping[str, Any],
    config: Optional[HyperdConfig] = None,
) -> Tuple[QueryCaps, List[str]]:
    cfg = config or HyperdConfig()
    reasons: List[str] = []

    missing = [k for k in ("source", "entity", "target") if not params.get(k)]
    if missing:
        raise ValueError(f"Missing query parameters: {', '.join(missing)}")

    raw_hops = params.get("hops")
    hops = cfg.default_max_hops if raw_hops in (None, "") else int(raw_hops)
    if hops > cfg.max_hops_limit:
        reasons.append("max_hops:max")
        hops = cfg.max_hops_limit

    raw_paths = params.get("max_paths")
    max_paths = cfg.max_paths if raw_paths in (None, "") else int(raw_paths)
    if max_paths > cfg.max_paths:
        reasons.append("max_paths:max")
        max_paths = cfg.max_paths
    if max_paths < 1:
        reasons.append("max_paths:min")
        max_paths = 1

    caps = QueryCaps(
        source_domain=str(params["source"]),
        source_entity=str(params["entity"]),
        target_domain=str(params["target"]),
        max_hops=hops,
        max_paths=max_paths,
    )
    return caps, reasons


__all__ = ["QueryCaps", "normalize_query"]
