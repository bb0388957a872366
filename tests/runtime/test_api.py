import asyncio

import numpy as np

from hyperd.config import HyperdConfig
from hyperd.runtime.api import HyperdAPI
from hyperd.runtime.orchestrator import HyperdOrchestrator
from hyperd.runtime.registry import StaticDomainService


def missing_learner(learner_id):
    raise LookupError(learner_id)


def build_api() -> HyperdAPI:
    orchestrator = HyperdOrchestrator(config=HyperdConfig(dimension=2))
    orchestrator.register_domain(
        "crm",
        StaticDomainService(
            {
                "getCustomer": lambda customer_id: {"id": customer_id},
                "predictChurn": lambda customer_id: 0.2,
                "getCRMAnalytics": lambda: {"customers": 1},
            },
            feature_vectors={"c1": [1.0, 0.0]},
        ),
    )
    orchestrator.register_domain(
        "mrp",
        StaticDomainService(
            {
                "optimizeInventory": lambda material_id: {"material": material_id, "reorder": 4},
                "predictMaterialFlow": lambda material_id, inventory, churn: {"flow": "steady"},
                "getMaterial": lambda material_id: {"id": material_id},
            },
            feature_vectors={"m1": [0.0, 1.0]},
        ),
    )
    orchestrator.register_domain(
        "lms",
        StaticDomainService(
            {"getLearner": missing_learner},
            feature_vectors={"l1": [1.0, 1.0]},
        ),
    )
    return HyperdAPI(orchestrator)


def test_execute_workflow_success_payload():
    api = build_api()

    payload = asyncio.run(
        api.execute_workflow("supply_demand_optimization", {"materialId": "m1", "customerId": "c1"})
    )

    assert payload["workflow"] == "supply_demand_optimization"
    assert payload["perNodeResults"]["n3"] == {"flow": "steady"}
    assert "timestamp" in payload


def test_execute_workflow_failure_carries_partial_results():
    api = build_api()

    payload = asyncio.run(
        api.execute_workflow(
            "customer_material_learning",
            {"customerId": "c1", "materialId": "m1", "learnerId": "l1"},
        )
    )

    assert payload["kind"] == "operation_failure"
    assert payload["nodeId"] == "n3"
    assert payload["perNodeResults"] == {"n1": {"id": "c1"}, "n2": {"id": "m1"}}


def test_workflow_error_kinds():
    api = build_api()

    unknown = asyncio.run(api.execute_workflow("quarterly_close"))
    missing = asyncio.run(api.execute_workflow("supply_demand_optimization", {"materialId": "m1"}))

    assert unknown["kind"] == "unknown_workflow"
    assert missing["kind"] == "invalid_parameters"
    assert "nodeId" not in unknown


def test_cross_domain_query_payloads():
    api = build_api()
    api.orchestrator.initialize_hypergraph()

    ok = api.cross_domain_query({"source": "crm", "entity": "c1", "target": "mrp", "hops": "2"})
    bad = api.cross_domain_query({"source": "crm", "target": "mrp"})
    unknown = api.cross_domain_query({"source": "crm", "entity": "c404", "target": "mrp"})

    # Only employee_learning_edge_1 has both members exported here
    assert ok["pathsFound"] == 0
    assert ok["paths"] == []
    assert ok["reasons"] == ["no_paths_found"]
    assert bad["kind"] == "invalid_parameters"
    assert unknown["kind"] == "unknown_node"


def test_propagate_and_insights_payloads():
    api = build_api()

    propagated = api.propagate("crm", "c1", hops=2)
    missing = api.propagate("crm", "c404")
    insights = api.get_unified_insights()

    assert propagated["nodeId"] == "crm:c1"
    assert propagated["nodesVisited"] == 2
    assert propagated["hopsCompleted"] == 1
    assert missing["kind"] == "unknown_node"
    assert insights["totalNodes"] == 3
    assert insights["totalHyperEdges"] == 1
    assert insights["meanEdgeArity"] == 2.0
    assert insights["edgeTypeCounts"] == {"customer_training": 1}


def test_domain_analytics_and_listing():
    api = build_api()

    analytics = asyncio.run(api.get_domain_analytics("crm"))
    unknown = asyncio.run(api.get_domain_analytics("erp"))

    assert analytics == {"domain": "crm", "analytics": {"customers": 1}}
    assert unknown["kind"] == "unknown_domain"
    assert api.list_domains() == {"domains": ["crm", "mrp", "lms"]}
    assert [w["name"] for w in api.list_workflows()["workflows"]] == [
        "full_enterprise_analysis",
        "supply_demand_optimization",
        "customer_material_learning",
    ]


def test_unexpected_errors_become_internal():
    api = build_api()

    def explode():
        raise RuntimeError("index corrupted")

    api.orchestrator.get_unified_insights = explode

    payload = api.get_unified_insights()

    assert payload == {"kind": "internal_error", "message": "index corrupted"}


class Ledger:
    def __repr__(self) -> str:
        return "Ledger(open)"


def test_numpy_results_serialize_on_success():
    api = build_api()
    mrp = api.orchestrator.registry.get("mrp")
    mrp.operations()["optimizeInventory"] = lambda material_id: np.arange(3)
    mrp.operations()["predictMaterialFlow"] = lambda material_id, inventory, churn: np.int64(int(inventory.sum()))

    payload = asyncio.run(
        api.execute_workflow("supply_demand_optimization", {"materialId": "m1", "customerId": "c1"})
    )

    assert payload["perNodeResults"] == {"n1": [0, 1, 2], "n2": 0.2, "n3": 3}


def test_opaque_results_serialize_in_partial_results():
    api = build_api()
    crm = api.orchestrator.registry.get("crm")
    mrp = api.orchestrator.registry.get("mrp")
    crm.operations()["getCustomer"] = lambda customer_id: Ledger()
    mrp.operations()["getMaterial"] = lambda material_id: np.array([1.5, 2.5])

    payload = asyncio.run(
        api.execute_workflow(
            "customer_material_learning",
            {"customerId": "c1", "materialId": "m1", "learnerId": "l1"},
        )
    )

    assert payload["kind"] == "operation_failure"
    assert payload["perNodeResults"] == {"n1": "Ledger(open)", "n2": [1.5, 2.5]}


def test_domain_analytics_numpy_payload():
    api = build_api()
    api.orchestrator.registry.get("crm").operations()["getCRMAnalytics"] = lambda: {"churn": np.float32(0.5)}

    analytics = asyncio.run(api.get_domain_analytics("crm"))
    dashboard = asyncio.run(api.get_enterprise_dashboard())

    assert analytics == {"domain": "crm", "analytics": {"churn": 0.5}}
    assert dashboard["domains"]["crm"] == {"churn": 0.5}
    assert dashboard["domains"]["mrp"]["kind"] == "unknown_operation"


def test_wrongly_typed_hops_are_invalid_parameters():
    api = build_api()

    payload = api.cross_domain_query({"source": "crm", "entity": "c1", "target": "mrp", "hops": [2]})

    assert payload["kind"] == "invalid_parameters"
