"""
Cross-Domain Path Finder - Bounded BFS over Hyperedges

WHAT: Enumerate paths from a source entity to any entity in a target domain
WHERE: hyperd/graph/paths.py - query layer over HyperGraphIndex
WHO: HyperdOrchestrator.cross_domain_query
TIME: Bounded by max_hops; output bounded by max_paths

Every hyperedge is treated as a clique over its members. A path grows from its
last node to any node sharing a hyperedge that is not already on the path, so
undirected cliques cannot loop. A path stops growing once it reaches the target
domain (it is reported) or once it has max_hops edges (it is dropped).

Dense cliques have combinatorially many simple paths, so the search also
stops after `max_expansions` partial paths have been extended. Paths already
queued are still checked, so `paths_found` is a lower bound when the budget
trips.

Reason codes:
- cap_exceeded: more paths found than `max_paths`; the first ones are kept
- no_paths_found: nothing in the target domain within max_hops
- empty_hops: max_hops <= 0
- search_budget: the expansion budget ran out before the search finished
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from time import monotonic
from typing import Deque, List, Tuple

from .hypergraph import HyperGraphIndex, KeyLike, NodeKey

logger = logging.getLogger(__name__)

DEFAULT_MAX_PATHS = 10
DEFAULT_MAX_EXPANSIONS = 10_000


@dataclass(slots=True)
class PathRecord:
    """One source → target-domain path."""

    nodes: List[NodeKey]

    @property
    def length(self) -> int:
        return len(self.nodes) - 1

    @property
    def domains(self) -> List[str]:
        return [k.domain for k in self.nodes]

    def as_strings(self) -> List[str]:
        return [str(k) for k in self.nodes]

    def __repr__(self) -> str:
        return f"PathRecord(length={self.length}, {' → '.join(self.as_strings())})"


@dataclass(slots=True)
class PathSearchResult:
    source: NodeKey
    target_domain: str
    max_hops: int
    paths_found: int
    paths: List[PathRecord] = field(default_factory=list)
    reasons: List[str] = field(default_factory=list)
    expansions: int = 0  # Partial paths extended
    latency_ms: float = 0.0


class CrossDomainPathFinder:
    """
    Breadth-first path enumeration over a HyperGraphIndex.

    Args:
        index: The hypergraph to search (read-only here)
        max_paths: Number of discovered paths returned; the total discovered
            count is still reported in `paths_found`
        max_expansions: Number of partial paths extended before the search
            gives up with reason `search_budget`
    """

    def __init__(
        self,
        index: HyperGraphIndex,
        *,
        max_paths: int = DEFAULT_MAX_PATHS,
        max_expansions: int = DEFAULT_MAX_EXPANSIONS,
    ) -> None:
        if max_paths < 0:
            raise ValueError("max_paths must be non-negative")
        if max_expansions < 1:
            raise ValueError("max_expansions must be >= 1")
        self.index = index
        self.max_paths = max_paths
        self.max_expansions = max_expansions

    def find_paths(
        self,
        source_key: KeyLike,
        target_domain: str,
        max_hops: int,
    ) -> PathSearchResult:
        start = monotonic()
        self.index.require_serving()
        source = self.index.require_node(source_key).key

        result = PathSearchResult(
            source=source,
            target_domain=target_domain,
            max_hops=max_hops,
            paths_found=0,
        )
        if max_hops <= 0:
            result.reasons.append("empty_hops")
            result.latency_ms = (monotonic() - start) * 1000.0
            return result

        queue: Deque[Tuple[NodeKey, ...]] = deque([(source,)])
        exhausted = False
        while queue:
            path = queue.popleft()
            last = path[-1]

            if len(path) > 1 and last.domain == target_domain:
                result.paths_found += 1
                if len(result.paths) < self.max_paths:
                    result.paths.append(PathRecord(nodes=list(path)))
                continue

            if len(path) - 1 >= max_hops or exhausted:
                continue
            if result.expansions >= self.max_expansions:
                exhausted = True
                result.reasons.append("search_budget")
                continue
            result.expansions += 1

            for neighbor in self.index.neighbors(last):
                if neighbor not in path:
                    queue.append(path + (neighbor,))

        if result.paths_found == 0:
            result.reasons.append("no_paths_found")
        elif result.paths_found > len(result.paths):
            result.reasons.append("cap_exceeded")

        result.latency_ms = (monotonic() - start) * 1000.0
        logger.debug(
            f"Path search {source} -> {target_domain}: {result.paths_found} found, "
            f"{len(result.paths)} returned, {result.expansions} expansions, {result.latency_ms:.1f}ms"
        )
        return result


__all__ = [
    "DEFAULT_MAX_PATHS",
    "DEFAULT_MAX_EXPANSIONS",
    "PathRecord",
    "PathSearchResult",
    "CrossDomainPathFinder",
]
