"""
Workflow Catalog - Named, Parameterized TaskGraph Presets

WHAT: Maps workflow names to builders that lay out a TaskGraph from params
WHERE: hyperd/runtime/workflows.py - pure graph construction, no I/O
WHO: HyperdOrchestrator.execute_workflow, HyperdAPI workflow listing
TIME: Construction O(nodes)

Presets:
- full_enterprise_analysis: per-domain analytics, then one correlation node
- supply_demand_optimization: inventory + churn, then material flow (materialId, customerId)
- customer_material_learning: customer, material, learner, then course
  recommendation (customerId, materialId, learnerId)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..errors import UnknownWorkflowError, WorkflowParameterError
from .registry import DomainRegistry
from .task_graph import TaskGraph
from .telemetry import TelemetryClient

GraphLayout = Callable[[TaskGraph, Mapping[str, Any]], None]


@dataclass(slots=True)
class Workflow:
    name: str
    layout: GraphLayout
    description: str = ""
    required_params: Tuple[str, ...] = ()

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "params": list(self.required_params),
        }


def _full_enterprise_analysis(graph: TaskGraph, params: Mapping[str, Any]) -> None:
    graph.add_node("n1", "scm", "getERPSCMAnalysis")
    graph.add_node("n2", "crm", "getCRMAnalytics")
    graph.add_node("n3", "mrp", "getMRPAnalytics")
    graph.add_node("n4", "lms", "getLMSAnalytics")
    graph.add_node("n5", "scm", "correlateAnalytics", inputs=["n1", "n2", "n3", "n4"])


def _supply_demand_optimization(graph: TaskGraph, params: Mapping[str, Any]) -> None:
    graph.add_node("n1", "mrp", "optimizeInventory", args=[params["materialId"]])
    graph.add_node("n2", "crm", "predictChurn", args=[params["customerId"]])
    graph.add_node(
        "n3",
        "mrp",
        "predictMaterialFlow",
        inputs=["n1", "n2"],
        args=[params["materialId"]],
    )


def _customer_material_learning(graph: TaskGraph, params: Mapping[str, Any]) -> None:
    graph.add_node("n1", "crm", "getCustomer", args=[params["customerId"]])
    graph.add_node("n2", "mrp", "getMaterial", args=[params["materialId"]])
    graph.add_node("n3", "lms", "getLearner", args=[params["learnerId"]])
    graph.add_node(
        "n4",
        "lms",
        "recommendCourses",
        inputs=["n1", "n2", "n3"],
        args=[params["learnerId"]],
    )


DEFAULT_WORKFLOWS: Tuple[Workflow, ...] = (
    Workflow(
        name="full_enterprise_analysis",
        layout=_full_enterprise_analysis,
        description="Analyze all domains, then correlate their analytics",
    ),
    Workflow(
        name="supply_demand_optimization",
        layout=_supply_demand_optimization,
        description="Optimize inventory against customer churn risk",
        required_params=("materialId", "customerId"),
    ),
    Workflow(
        name="customer_material_learning",
        layout=_customer_material_learning,
        description="Link a customer, a material and a learner into course recommendations",
        required_params=("customerId", "materialId", "learnerId"),
    ),
)


@dataclass
class WorkflowCatalog:
    """Registry of workflow presets; builds ready-to-run TaskGraphs."""

    registry: Optional[DomainRegistry] = None
    telemetry: Optional[TelemetryClient] = None
    max_concurrency: Optional[int] = None
    workflows: Dict[str, Workflow] = field(default_factory=dict)
    include_defaults: bool = True

    def __post_init__(self) -> None:
        if self.include_defaults:
            for wf in DEFAULT_WORKFLOWS:
                self.workflows.setdefault(wf.name, wf)

    def register(
        self,
        name: str,
        layout: GraphLayout,
        *,
        description: str = "",
        required_params: Tuple[str, ...] = (),
    ) -> Workflow:
        wf = Workflow(name=name, layout=layout, description=description, required_params=tuple(required_params))
        self.workflows[name] = wf
        return wf

    def get(self, name: str) -> Workflow:
        try:
            return self.workflows[name]
        except KeyError:
            raise UnknownWorkflowError(name) from None

    def names(self) -> List[str]:
        return list(self.workflows)

    def describe(self) -> List[Dict[str, Any]]:
        return [wf.describe() for wf in self.workflows.values()]

    def build_graph(self, name: str, params: Optional[Mapping[str, Any]] = None) -> TaskGraph:
        """Lay out the named workflow. Cycles and bad references surface here."""

        wf = self.get(name)
        values = dict(params or {})
        missing = [p for p in wf.required_params if values.get(p) in (None, "")]
        if missing:
            raise WorkflowParameterError(name, missing)

        graph = TaskGraph(
            self.registry,
            max_concurrency=self.max_concurrency,
            telemetry=self.telemetry,
        )
        wf.layout(graph, values)
        graph.build_order()
        return graph


__all__ = [
    "GraphLayout",
    "Workflow",
    "WorkflowCatalog",
    "DEFAULT_WORKFLOWS",
]
