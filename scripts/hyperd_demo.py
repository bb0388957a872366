#!/usr/bin/env python3
"""
Hyperd Cross-Domain Demo
========================

Registers four in-memory domain services (scm, crm, mrp, lms) with seeded
random feature vectors, builds the hypergraph, then runs a workflow and a
cross-domain query and prints the JSON payloads.

Usage:
    python scripts/hyperd_demo.py
    python scripts/hyperd_demo.py --workflow supply_demand_optimization --source crm --entity c1 --target mrp
    python scripts/hyperd_demo.py --hops 2 --dimension 32
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from hyperd.config import resolve_config
from hyperd.runtime import HyperdAPI, HyperdOrchestrator, LoggingTelemetryClient, StaticDomainService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

DEMO_ENTITIES: Dict[str, List[str]] = {
    "scm": ["s1", "d1"],
    "crm": ["c1", "c3"],
    "mrp": ["m1", "m6"],
    "lms": ["l1"],
}


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run a Hyperd workflow and cross-domain query")
    p.add_argument("--workflow", default="customer_material_learning")
    p.add_argument("--source", default="scm", help="Source domain (default: scm)")
    p.add_argument("--entity", default="s1", help="Source entity id (default: s1)")
    p.add_argument("--target", default="lms", help="Target domain (default: lms)")
    p.add_argument("--hops", type=int, default=3)
    p.add_argument("--dimension", type=int, default=16)
    p.add_argument("--seed", type=int, default=7)
    return p.parse_args()


def build_services(dimension: int, seed: int) -> Dict[str, StaticDomainService]:
    rng = np.random.default_rng(seed)

    def vectors(domain: str) -> Dict[str, List[float]]:
        return {eid: rng.normal(size=dimension).tolist() for eid in DEMO_ENTITIES[domain]}

    def analytics(domain: str):
        return lambda: {"domain": domain, "entities": len(DEMO_ENTITIES[domain])}

    def echo(name: str):
        return lambda *args: {"operation": name, "args": [a if isinstance(a, str) else "<input>" for a in args]}

    ops: Dict[str, Dict[str, Any]] = {
        "scm": {"getERPSCMAnalysis": analytics("scm"), "correlateAnalytics": echo("correlateAnalytics")},
        "crm": {
            "getCRMAnalytics": analytics("crm"),
            "getCustomer": echo("getCustomer"),
            "predictChurn": echo("predictChurn"),
        },
        "mrp": {
            "getMRPAnalytics": analytics("mrp"),
            "getMaterial": echo("getMaterial"),
            "optimizeInventory": echo("optimizeInventory"),
            "predictMaterialFlow": echo("predictMaterialFlow"),
        },
        "lms": {
            "getLMSAnalytics": analytics("lms"),
            "getLearner": echo("getLearner"),
            "recommendCourses": echo("recommendCourses"),
        },
    }
    return {
        domain: StaticDomainService(
            ops[domain],
            feature_vectors=vectors(domain),
            summary={"entities": len(DEMO_ENTITIES[domain])},
        )
        for domain in DEMO_ENTITIES
    }


async def run(args: argparse.Namespace) -> int:
    cfg = resolve_config(dimension=args.dimension)
    orchestrator = HyperdOrchestrator(config=cfg, telemetry=LoggingTelemetryClient())
    for name, service in build_services(args.dimension, args.seed).items():
        orchestrator.register_domain(name, service)
    api = HyperdAPI(orchestrator)

    params = {"customerId": "c1", "materialId": "m1", "learnerId": "l1"}
    workflow = await api.execute_workflow(args.workflow, params)
    print(json.dumps(workflow, indent=2))

    query = api.cross_domain_query(
        {"source": args.source, "entity": args.entity, "target": args.target, "hops": args.hops}
    )
    print(json.dumps(query, indent=2))

    insights = api.get_unified_insights()
    print(json.dumps(insights, indent=2))
    return 0 if "kind" not in workflow and "kind" not in query else 1


def main() -> int:
    args = parse_args()
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
