"""
Cross-Domain Hypergraph - Index, Attention Propagation and Path Search

WHAT: Multi-relation index linking entities across domain services
WHERE: hyperd/graph/ - read-mostly query layer, independent of task execution
WHO: HyperdOrchestrator cross-domain queries and insight summaries
TIME: Built once per process; queries bounded by hop and path caps

Components:
- FeatureVector: immutable numpy-backed entity vector
- HyperGraphIndex: nodes keyed by (domain, entity), weighted typed hyperedges
- AttentionPropagator: static multi-head attention weighting
- CrossDomainPathFinder: bounded BFS treating hyperedges as cliques
"""

from .attention import AttentionConfig, AttentionPropagator  # noqa: F401
from .features import FeatureVector  # noqa: F401
from .hypergraph import (  # noqa: F401
    GraphNode,
    HyperEdge,
    HyperGraphIndex,
    NodeKey,
    PropagationResult,
)
from .paths import (  # noqa: F401
    DEFAULT_MAX_PATHS,
    CrossDomainPathFinder,
    PathRecord,
    PathSearchResult,
)

__all__ = [
    "AttentionConfig",
    "AttentionPropagator",
    "FeatureVector",
    "GraphNode",
    "HyperEdge",
    "HyperGraphIndex",
    "NodeKey",
    "PropagationResult",
    "DEFAULT_MAX_PATHS",
    "CrossDomainPathFinder",
    "PathRecord",
    "PathSearchResult",
]
