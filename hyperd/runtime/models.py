"""
Payload Models - Type-safe structures for the exposed interface

WHAT: Pydantic models for workflow results, cross-domain queries, insights, errors
WHERE: hyperd/runtime/models.py - boundary data layer
WHO: HyperdOrchestrator (construction), HyperdAPI (serialization)
TIME: Model validation <1ms

External keys are camelCase (pathsFound, perNodeResults, ...) through field
aliases; Python code uses the snake_case names. `model_dump(by_alias=True)`
produces the wire shape.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic_core import to_jsonable_python


def _opaque_fallback(value: Any) -> Any:
    # numpy arrays and scalars expose tolist(); anything else is reported by repr
    if hasattr(value, "tolist"):
        return value.tolist()
    return repr(value)


def jsonable(value: Any) -> Any:
    """Convert opaque domain results into JSON-compatible values."""

    if value is None:
        return None
    return to_jsonable_python(value, fallback=_opaque_fallback)


class BoundaryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class HyperEdgeSpec(BoundaryModel):
    """Configuration for one cross-domain hyperedge."""

    id: str = Field(min_length=1)
    nodes: List[str] = Field(min_length=2)
    type: str = Field(min_length=1)
    weight: float = Field(default=1.0, ge=0.0, le=1.0)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("nodes")
    @classmethod
    def _keys_have_domain(cls, value: List[str]) -> List[str]:
        for key in value:
            domain, sep, entity = key.partition(":")
            if not sep or not domain or not entity:
                raise ValueError(f"Node key must look like 'domain:entity', got {key!r}")
        return value


DEFAULT_EDGE_SPECS: List[HyperEdgeSpec] = [
    HyperEdgeSpec(
        id="supply_to_customer_edge_1",
        nodes=["scm:s1", "crm:c1", "mrp:m1"],
        type="supply_chain_integration",
        weight=0.9,
        metadata={"relationship": "supplier_to_enterprise_customer_material"},
    ),
    HyperEdgeSpec(
        id="employee_learning_edge_1",
        nodes=["crm:c1", "lms:l1"],
        type="customer_training",
        weight=0.8,
        metadata={"relationship": "enterprise_customer_employee_learning"},
    ),
    HyperEdgeSpec(
        id="material_demand_edge_1",
        nodes=["mrp:m6", "crm:c3", "scm:d1"],
        type="demand_fulfillment",
        weight=0.95,
        metadata={"relationship": "finished_good_to_customer_via_distributor"},
    ),
]


class EdgeBuildReport(BoundaryModel):
    created: List[str] = Field(default_factory=list)
    rejected: Dict[str, str] = Field(default_factory=dict)  # edge id -> reason


class WorkflowResult(BoundaryModel):
    workflow: str
    per_node_results: Dict[str, Any] = Field(default_factory=dict, alias="perNodeResults")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("per_node_results")
    def _serialize_results(self, value: Dict[str, Any]) -> Dict[str, Any]:
        return jsonable(value)


class PathPayload(BoundaryModel):
    path: List[str]
    length: int = Field(ge=0)
    domains: List[str]


class CrossDomainQueryResult(BoundaryModel):
    source_domain: str = Field(alias="sourceDomain")
    source_entity: str = Field(alias="sourceEntity")
    target_domain: str = Field(alias="targetDomain")
    max_hops: int = Field(alias="maxHops")
    paths_found: int = Field(ge=0, alias="pathsFound")
    paths: List[PathPayload] = Field(default_factory=list)
    reasons: List[str] = Field(default_factory=list)
    latency_ms: float = Field(default=0.0, alias="latencyMs")


class PropagationPayload(BoundaryModel):
    node_id: str = Field(alias="nodeId")
    embedding: List[float]
    hops_completed: int = Field(ge=0, alias="hopsCompleted")
    nodes_visited: int = Field(ge=1, alias="nodesVisited")
    contributors: List[str] = Field(default_factory=list)


class InsightsPayload(BoundaryModel):
    node_counts: Dict[str, int] = Field(default_factory=dict, alias="nodeCounts")
    edge_type_counts: Dict[str, int] = Field(default_factory=dict, alias="edgeTypeCounts")
    per_domain_summaries: Dict[str, Any] = Field(default_factory=dict, alias="perDomainSummaries")
    total_nodes: int = Field(default=0, alias="totalNodes")
    total_edges: int = Field(default=0, alias="totalHyperEdges")
    mean_edge_arity: float = Field(default=0.0, alias="meanEdgeArity")
    total_domains: int = Field(default=0, alias="totalDomains")
    initialized: bool = False


class ExportedState(BoundaryModel):
    nodes: List[Dict[str, Any]] = Field(default_factory=list)
    edges: List[Dict[str, Any]] = Field(default_factory=list)
    domains: List[str] = Field(default_factory=list)
    initialized: bool = False


class ErrorPayload(BoundaryModel):
    kind: str
    message: str
    node_id: Optional[str] = Field(default=None, alias="nodeId")
    per_node_results: Optional[Dict[str, Any]] = Field(default=None, alias="perNodeResults")

    @field_serializer("per_node_results")
    def _serialize_results(self, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return jsonable(value)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


__all__ = [
    "jsonable",
    "BoundaryModel",
    "HyperEdgeSpec",
    "DEFAULT_EDGE_SPECS",
    "EdgeBuildReport",
    "WorkflowResult",
    "PathPayload",
    "CrossDomainQueryResult",
    "PropagationPayload",
    "InsightsPayload",
    "ExportedState",
    "ErrorPayload",
]
