"""
Hyperd Configuration

Static configuration for the orchestrator, the hypergraph index and the
attention propagator. Values default from the environment so deployments can
tune caps without code changes; nothing here is learned or updated at runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DIMENSION = int(os.environ.get("HYPERD_DIMENSION", "128"))


@dataclass(slots=True)
class HyperdConfig:
    """Orchestrator-wide settings."""

    dimension: int = DEFAULT_DIMENSION
    attention_heads: int = 4
    attention_seed: int = 1337
    attention_init_scale: float = 0.1
    propagation_self_weight: float = 0.5
    max_paths: int = 10  # Cap on returned cross-domain paths
    max_expansions: int = 10_000  # Partial paths a cross-domain search may extend
    max_hops_limit: int = 6
    default_max_hops: int = 3
    call_timeout_s: Optional[float] = None  # Per domain call; None = no timeout
    max_concurrency: Optional[int] = None  # Concurrent task nodes; None = unbounded


def _optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def resolve_config(env: Optional[Mapping[str, str]] = None, **overrides) -> HyperdConfig:
    """Build a HyperdConfig from environment variables plus explicit overrides."""

    source = os.environ if env is None else env
    cfg = HyperdConfig(
        dimension=int(source.get("HYPERD_DIMENSION", DEFAULT_DIMENSION)),
        attention_heads=int(source.get("HYPERD_ATTENTION_HEADS", 4)),
        attention_seed=int(source.get("HYPERD_ATTENTION_SEED", 1337)),
        attention_init_scale=float(source.get("HYPERD_ATTENTION_INIT_SCALE", 0.1)),
        propagation_self_weight=float(source.get("HYPERD_SELF_WEIGHT", 0.5)),
        max_paths=int(source.get("HYPERD_MAX_PATHS", 10)),
        max_expansions=int(source.get("HYPERD_MAX_EXPANSIONS", 10_000)),
        max_hops_limit=int(source.get("HYPERD_MAX_HOPS_LIMIT", 6)),
        default_max_hops=int(source.get("HYPERD_DEFAULT_MAX_HOPS", 3)),
        call_timeout_s=_optional_float(source.get("HYPERD_CALL_TIMEOUT_S")),
        max_concurrency=_optional_int(source.get("HYPERD_MAX_CONCURRENCY")),
    )
    for key, value in overrides.items():
        if not hasattr(cfg, key):
            raise TypeError(f"Unknown config field: {key}")
        setattr(cfg, key, value)
    return cfg


__all__ = ["HyperdConfig", "resolve_config", "DEFAULT_DIMENSION"]
