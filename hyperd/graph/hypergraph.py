"""
Cross-Domain Hypergraph Index

WHAT: Multi-relation index of domain entities linked by weighted hyperedges
WHERE: hyperd/graph/hypergraph.py - owned by HyperdOrchestrator
WHO: Cross-domain path queries, attention propagation, insight summaries
TIME: Build once per process (or on rebuild); queries are read-only

Nodes are keyed by (domain, entity_id) and carry one FeatureVector. Hyperedges
connect two or more existing nodes under a relation type and a weight in
[0, 1]. Both are immutable once inserted.

Mutation follows a single-writer / multiple-reader discipline: nodes and edges
may only be added inside `building()`, and queries are refused while a build
is in progress. Edge insertion validates every reference before touching any
state, so a rejected edge leaves the index unchanged.

Full rebuilds go through `staging()`: the new contents are built in a fresh
index and swapped in with `adopt()`, so readers never see a half-built graph.

Boundary Notes:
- Propagation uses AttentionPropagator (static projections, never trained)
- Insights are counts only, no traversal
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Union

from ..errors import (
    DuplicateKeyError,
    EdgeValidationError,
    FeatureDimensionError,
    IndexStateError,
    UnknownEdgeNodeError,
    UnknownNodeError,
)
from .attention import AttentionConfig, AttentionPropagator
from .features import FeatureVector

logger = logging.getLogger(__name__)


class NodeKey(NamedTuple):
    """Composite node identity: (domain, entity_id)."""

    domain: str
    entity_id: str

    @classmethod
    def parse(cls, raw: str) -> NodeKey:
        """Split "domain:entity" on the first colon only."""
        domain, sep, entity_id = raw.partition(":")
        if not sep or not domain or not entity_id:
            raise ValueError(f"Node key must look like 'domain:entity', got {raw!r}")
        return cls(domain, entity_id)

    @classmethod
    def coerce(cls, value: KeyLike) -> NodeKey:
        if isinstance(value, NodeKey):
            return value
        if isinstance(value, tuple):
            return cls(*value)
        return cls.parse(value)

    def __str__(self) -> str:
        return f"{self.domain}:{self.entity_id}"


KeyLike = Union[NodeKey, str, tuple]


@dataclass(frozen=True, slots=True)
class GraphNode:
    key: NodeKey
    vector: FeatureVector

    @property
    def domain(self) -> str:
        return self.key.domain

    @property
    def entity_id(self) -> str:
        return self.key.entity_id


@dataclass(frozen=True, slots=True)
class HyperEdge:
    """Typed, weighted relation over an ordered set of ≥2 node keys."""

    edge_id: str
    nodes: tuple[NodeKey, ...]
    relation_type: str
    weight: float = 1.0
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def arity(self) -> int:
        return len(self.nodes)

    @property
    def domains(self) -> List[str]:
        seen: List[str] = []
        for key in self.nodes:
            if key.domain not in seen:
                seen.append(key.domain)
        return seen

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.edge_id,
            "nodes": [str(k) for k in self.nodes],
            "type": self.relation_type,
            "weight": self.weight,
            "metadata": dict(self.metadata),
        }


@dataclass(slots=True)
class PropagationResult:
    """Outcome of `HyperGraphIndex.propagate`."""

    source: NodeKey
    vector: FeatureVector
    hops_completed: int
    nodes_visited: int
    contributors: List[str]  # Domains folded into the aggregate


class HyperGraphIndex:
    """
    In-memory hypergraph over domain entities.

    Args:
        dimension: Feature dimension D shared by every node
        attention: Propagator used by `propagate`; defaults to a seeded one
        self_weight: Share of the running aggregate kept each propagation round
    """

    def __init__(
        self,
        dimension: int = 128,
        *,
        attention: Optional[AttentionPropagator] = None,
        self_weight: float = 0.5,
    ) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._dimension = dimension
        self._attention = attention or AttentionPropagator(AttentionConfig(dimension=dimension))
        if self._attention.dimension != dimension:
            raise ValueError(
                f"Attention dimension {self._attention.dimension} != index dimension {dimension}"
            )
        self._self_weight = self_weight
        self._nodes: Dict[NodeKey, GraphNode] = {}
        self._edges: Dict[str, HyperEdge] = {}
        self._incidence: Dict[NodeKey, List[str]] = {}  # node -> edge ids, insertion order
        self._building = False
        self._lock = threading.Lock()

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def attention(self) -> AttentionPropagator:
        return self._attention

    @property
    def self_weight(self) -> float:
        return self._self_weight

    @property
    def is_building(self) -> bool:
        return self._building

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # ---------------------- build phase ----------------------
    @contextmanager
    def building(self) -> Iterator[HyperGraphIndex]:
        """Open the single-writer build phase for the duration of the block."""

        with self._lock:
            if self._building:
                raise IndexStateError("Index build already in progress")
            self._building = True
        try:
            yield self
        finally:
            self._building = False
            logger.info(
                f"Hypergraph build closed: {len(self._nodes)} nodes, {len(self._edges)} edges"
            )

    def rebuild(self) -> None:
        """Drop every node and edge. Callers re-ingest inside `building()`."""

        with self._lock:
            if self._building:
                raise IndexStateError("Cannot rebuild while a build is in progress")
            self._nodes.clear()
            self._edges.clear()
            self._incidence.clear()

    def staging(self) -> HyperGraphIndex:
        """Empty index with the same dimension, attention and self weight."""

        return HyperGraphIndex(
            self._dimension,
            attention=self._attention,
            self_weight=self._self_weight,
        )

    def adopt(self, other: HyperGraphIndex) -> None:
        """Replace this index's contents with those of a fully built `other`."""

        if other is self:
            return
        if other.dimension != self._dimension:
            raise FeatureDimensionError("adopted index", self._dimension, other.dimension)
        if other.is_building:
            raise IndexStateError("Cannot adopt an index that is still being built")
        with self._lock:
            if self._building:
                raise IndexStateError("Cannot adopt while a build is in progress")
            self._nodes = dict(other._nodes)
            self._edges = dict(other._edges)
            self._incidence = {k: list(v) for k, v in other._incidence.items()}
        logger.info(f"Hypergraph swapped in: {len(self._nodes)} nodes, {len(self._edges)} edges")

    def _require_building(self) -> None:
        if not self._building:
            raise IndexStateError("Index mutation is only allowed inside building()")

    def require_serving(self) -> None:
        if self._building:
            raise IndexStateError("Index is being built; queries are not served")

    # ---------------------- mutation ----------------------
    def add_node(
        self,
        domain: str,
        entity_id: str,
        vector: FeatureVector | Sequence[float],
    ) -> GraphNode:
        self._require_building()
        key = NodeKey(domain, entity_id)
        if key in self._nodes:
            raise DuplicateKeyError("Node", str(key))
        fv = vector if isinstance(vector, FeatureVector) else FeatureVector(vector)
        if fv.dimension != self._dimension:
            raise FeatureDimensionError(str(key), self._dimension, fv.dimension)

        node = GraphNode(key=key, vector=fv)
        self._nodes[key] = node
        self._incidence[key] = []
        return node

    def add_hyper_edge(
        self,
        edge_id: str,
        node_keys: Sequence[KeyLike],
        relation_type: str,
        weight: float = 1.0,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> HyperEdge:
        """Validate every reference, then insert. A rejected edge mutates nothing."""

        self._require_building()
        if edge_id in self._edges:
            raise DuplicateKeyError("Hyperedge", edge_id)
        if not 0.0 <= float(weight) <= 1.0:
            raise EdgeValidationError(f"Hyperedge {edge_id} weight {weight} outside [0, 1]")

        keys: List[NodeKey] = []
        for raw in node_keys:
            key = NodeKey.coerce(raw)
            if key not in keys:
                keys.append(key)
        if len(keys) < 2:
            raise EdgeValidationError(f"Hyperedge {edge_id} needs at least 2 distinct nodes")

        missing = [str(k) for k in keys if k not in self._nodes]
        if missing:
            raise UnknownEdgeNodeError(edge_id, missing)

        edge = HyperEdge(
            edge_id=edge_id,
            nodes=tuple(keys),
            relation_type=relation_type,
            weight=float(weight),
            metadata=MappingProxyType(dict(metadata or {})),
        )
        self._edges[edge_id] = edge
        for key in keys:
            self._incidence[key].append(edge_id)
        return edge

    # ---------------------- lookup ----------------------
    def get_node(self, key: KeyLike) -> Optional[GraphNode]:
        return self._nodes.get(NodeKey.coerce(key))

    def get_edge(self, edge_id: str) -> Optional[HyperEdge]:
        return self._edges.get(edge_id)

    def require_node(self, key: KeyLike) -> GraphNode:
        node = self.get_node(key)
        if node is None:
            raise UnknownNodeError(str(NodeKey.coerce(key)))
        return node

    def nodes(self) -> List[GraphNode]:
        return list(self._nodes.values())

    def edges(self) -> List[HyperEdge]:
        return list(self._edges.values())

    def nodes_in_domain(self, domain: str) -> List[GraphNode]:
        return [n for n in self._nodes.values() if n.domain == domain]

    def edges_of(self, key: KeyLike) -> List[HyperEdge]:
        k = NodeKey.coerce(key)
        return [self._edges[eid] for eid in self._incidence.get(k, [])]

    def neighbors(self, key: KeyLike) -> List[NodeKey]:
        """Distinct nodes sharing any hyperedge with `key`, in edge insertion order."""

        k = NodeKey.coerce(key)
        seen: List[NodeKey] = []
        for eid in self._incidence.get(k, []):
            for member in self._edges[eid].nodes:
                if member != k and member not in seen:
                    seen.append(member)
        return seen

    # ---------------------- propagation ----------------------
    def propagate(self, source_key: KeyLike, hops: int = 2) -> PropagationResult:
        """
        Attention-weighted neighbor aggregation starting from `source_key`.

        Each round gathers the unvisited members of every hyperedge touching
        the visited set, weights them against the running aggregate, folds
        them in and re-normalizes. Stops early when a round finds nothing new.
        """
        self.require_serving()
        source = self.require_node(source_key)
        if hops < 0:
            raise ValueError("hops must be non-negative")

        current = source.vector
        visited: set[NodeKey] = {source.key}
        contributors: List[str] = [source.domain]
        completed = 0

        for _ in range(hops):
            frontier: List[NodeKey] = []
            for edge in self._edges.values():
                if not any(k in visited for k in edge.nodes):
                    continue
                for k in edge.nodes:
                    if k not in visited and k not in frontier:
                        frontier.append(k)

            if not frontier:
                break

            neighbor_vectors = [self._nodes[k].vector for k in frontier]
            current = self._attention.aggregate(current, neighbor_vectors, self._self_weight)
            visited.update(frontier)
            for k in frontier:
                if k.domain not in contributors:
                    contributors.append(k.domain)
            completed += 1

        return PropagationResult(
            source=source.key,
            vector=current,
            hops_completed=completed,
            nodes_visited=len(visited),
            contributors=contributors,
        )

    # ---------------------- summaries ----------------------
    def insights(self) -> Dict[str, Any]:
        node_counts: Dict[str, int] = {}
        for node in self._nodes.values():
            node_counts[node.domain] = node_counts.get(node.domain, 0) + 1

        edge_type_counts: Dict[str, int] = {}
        for edge in self._edges.values():
            edge_type_counts[edge.relation_type] = edge_type_counts.get(edge.relation_type, 0) + 1

        total_arity = sum(e.arity for e in self._edges.values())
        mean_arity = total_arity / len(self._edges) if self._edges else 0.0
        return {
            "total_nodes": len(self._nodes),
            "total_edges": len(self._edges),
            "node_counts": node_counts,
            "edge_type_counts": edge_type_counts,
            "mean_edge_arity": mean_arity,
        }

    def export(self) -> Dict[str, List[Dict[str, Any]]]:
        """Diagnostic snapshot; not a persistence format."""

        return {
            "nodes": [
                {
                    "id": str(n.key),
                    "domain": n.domain,
                    "entityId": n.entity_id,
                    "dimension": n.vector.dimension,
                }
                for n in self._nodes.values()
            ],
            "edges": [e.as_dict() for e in self._edges.values()],
        }


__all__ = [
    "NodeKey",
    "GraphNode",
    "HyperEdge",
    "PropagationResult",
    "HyperGraphIndex",
]
