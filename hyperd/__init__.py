"""Hyperd: cross-domain task orchestration and hypergraph index."""

from .config import HyperdConfig, resolve_config  # noqa: F401
from .errors import (  # noqa: F401
    DuplicateKeyError,
    EdgeValidationError,
    FeatureDimensionError,
    GraphCycleError,
    HyperdError,
    IndexStateError,
    OperationFailure,
    UnknownDomainError,
    UnknownEdgeNodeError,
    UnknownNodeError,
    UnknownOperationError,
    UnknownWorkflowError,
    WorkflowParameterError,
)

__all__ = [
    "HyperdConfig",
    "resolve_config",
    "DuplicateKeyError",
    "EdgeValidationError",
    "FeatureDimensionError",
    "GraphCycleError",
    "HyperdError",
    "IndexStateError",
    "OperationFailure",
    "UnknownDomainError",
    "UnknownEdgeNodeError",
    "UnknownNodeError",
    "UnknownOperationError",
    "UnknownWorkflowError",
    "WorkflowParameterError",
    "graph",
    "runtime",
]
