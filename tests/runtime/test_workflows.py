import asyncio

import pytest

from hyperd.errors import GraphCycleError, UnknownWorkflowError, WorkflowParameterError
from hyperd.runtime.registry import DomainRegistry, StaticDomainService
from hyperd.runtime.workflows import DEFAULT_WORKFLOWS, WorkflowCatalog


def echo(name):
    return lambda *args: f"{name}({','.join(str(a) for a in args)})"


def make_registry() -> DomainRegistry:
    registry = DomainRegistry()
    registry.register(
        "crm",
        StaticDomainService({op: echo(op) for op in ("getCRMAnalytics", "getCustomer", "predictChurn")}),
    )
    registry.register(
        "mrp",
        StaticDomainService(
            {
                op: echo(op)
                for op in ("getMRPAnalytics", "getMaterial", "optimizeInventory", "predictMaterialFlow")
            }
        ),
    )
    registry.register(
        "lms",
        StaticDomainService({op: echo(op) for op in ("getLMSAnalytics", "getLearner", "recommendCourses")}),
    )
    registry.register(
        "scm",
        StaticDomainService({op: echo(op) for op in ("getERPSCMAnalysis", "correlateAnalytics")}),
    )
    return registry


def test_default_presets_are_listed():
    catalog = WorkflowCatalog()

    assert catalog.names() == [wf.name for wf in DEFAULT_WORKFLOWS]
    described = {d["name"]: d for d in catalog.describe()}
    assert described["customer_material_learning"]["params"] == ["customerId", "materialId", "learnerId"]


def test_full_enterprise_analysis_layout():
    graph = WorkflowCatalog().build_graph("full_enterprise_analysis")

    assert graph.build_order() == ["n1", "n2", "n3", "n4", "n5"]
    assert graph.get_node("n5").inputs == ["n1", "n2", "n3", "n4"]


def test_supply_demand_optimization_runs():
    catalog = WorkflowCatalog(registry=make_registry())
    graph = catalog.build_graph("supply_demand_optimization", {"materialId": "m1", "customerId": "c1"})

    results = asyncio.run(graph.execute())

    assert results == {
        "n1": "optimizeInventory(m1)",
        "n2": "predictChurn(c1)",
        "n3": "predictMaterialFlow(m1,optimizeInventory(m1),predictChurn(c1))",
    }


def test_missing_params_raise():
    catalog = WorkflowCatalog()

    with pytest.raises(WorkflowParameterError) as excinfo:
        catalog.build_graph("customer_material_learning", {"customerId": "c1"})
    assert excinfo.value.missing == ["materialId", "learnerId"]
    assert excinfo.value.kind == "invalid_parameters"


def test_unknown_workflow():
    with pytest.raises(UnknownWorkflowError):
        WorkflowCatalog().build_graph("quarterly_close")


def test_custom_workflow_cycle_surfaces_at_build():
    def looping(graph, params):
        graph.add_node("a", "crm", "getCustomer", inputs=["b"])
        graph.add_node("b", "crm", "getCustomer", inputs=["a"])

    catalog = WorkflowCatalog(include_defaults=False)
    catalog.register("looping", looping, description="broken")

    assert catalog.names() == ["looping"]
    with pytest.raises(GraphCycleError):
        catalog.build_graph("looping")
