"""
Error Taxonomy - Structured Failures for Orchestration and Index Operations

WHAT: Exception hierarchy with stable `kind` strings for every public failure
WHERE: hyperd/errors.py - shared by graph/ and runtime/
WHO: TaskGraph, DomainRegistry, HyperGraphIndex, WorkflowCatalog, HyperdAPI
TIME: Construction-time errors raised eagerly; execution-time errors abort one workflow

Construction-time errors (cycles, unknown workflows, bad edge references) are
raised before anything executes. Execution-time errors abort the current
TaskGraph and carry the partial result map; registry and index state are left
untouched. Nothing here retries.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class HyperdError(Exception):
    """Base class for all orchestrator failures."""

    kind: str = "hyperd_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        # Populated by TaskGraph.execute() when the error aborts a run
        self.node_id: Optional[str] = None
        self.partial_results: Dict[str, Any] = {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.node_id is not None:
            payload["nodeId"] = self.node_id
            payload["perNodeResults"] = dict(self.partial_results)
        return payload


class GraphCycleError(HyperdError):
    """Raised when a TaskGraph contains a dependency cycle."""

    kind = "graph_cycle"

    def __init__(self, node_id: str, cycle: List[str]) -> None:
        super().__init__(
            f"Cycle detected in task graph at node: {node_id} ({' -> '.join(cycle)})"
        )
        self.cycle_node = node_id
        self.cycle = list(cycle)


class UnknownNodeError(HyperdError):
    """Raised when a task id or hypergraph node key is not present."""

    kind = "unknown_node"

    def __init__(self, key: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Node not found: {key}")
        self.key = key


class UnknownDomainError(HyperdError):
    kind = "unknown_domain"

    def __init__(self, domain: str) -> None:
        super().__init__(f"Domain not registered: {domain}")
        self.domain = domain


class UnknownOperationError(HyperdError):
    kind = "unknown_operation"

    def __init__(self, domain: str, operation: str) -> None:
        super().__init__(f"Operation not found: {operation} in domain {domain}")
        self.domain = domain
        self.operation = operation


class UnknownWorkflowError(HyperdError):
    kind = "unknown_workflow"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown workflow: {name}")
        self.name = name


class WorkflowParameterError(HyperdError):
    """Raised when a workflow preset is missing required parameters."""

    kind = "invalid_parameters"

    def __init__(self, workflow: str, missing: List[str]) -> None:
        super().__init__(
            f"Workflow {workflow} missing required parameters: {', '.join(missing)}"
        )
        self.workflow = workflow
        self.missing = list(missing)


class OperationFailure(HyperdError):
    """A domain service call rejected, raised, or timed out."""

    kind = "operation_failure"

    def __init__(self, domain: str, operation: str, reason: str) -> None:
        super().__init__(f"{domain}.{operation} failed: {reason}")
        self.domain = domain
        self.operation = operation
        self.reason = reason


class EdgeValidationError(HyperdError):
    """A hyperedge was rejected; the index is left unchanged."""

    kind = "edge_validation"


class UnknownEdgeNodeError(EdgeValidationError, UnknownNodeError):
    """A hyperedge referenced node keys that were never added."""

    kind = "edge_validation"

    def __init__(self, edge_id: str, missing: List[str]) -> None:
        UnknownNodeError.__init__(
            self,
            missing[0],
            f"Hyperedge {edge_id} references unknown nodes: {', '.join(missing)}",
        )
        self.edge_id = edge_id
        self.missing = list(missing)


class DuplicateKeyError(HyperdError):
    kind = "duplicate_key"

    def __init__(self, what: str, key: str) -> None:
        super().__init__(f"{what} already exists: {key}")
        self.key = key


class FeatureDimensionError(HyperdError):
    kind = "dimension_mismatch"

    def __init__(self, key: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Feature vector for {key} has dimension {actual}, expected {expected}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class IndexStateError(HyperdError):
    """Mutation outside the build phase, or a query during it."""

    kind = "index_state"


__all__ = [
    "HyperdError",
    "GraphCycleError",
    "UnknownNodeError",
    "UnknownDomainError",
    "UnknownOperationError",
    "UnknownWorkflowError",
    "WorkflowParameterError",
    "OperationFailure",
    "EdgeValidationError",
    "UnknownEdgeNodeError",
    "DuplicateKeyError",
    "FeatureDimensionError",
    "IndexStateError",
]
