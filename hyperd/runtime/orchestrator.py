"""
Hyperd Orchestrator - Central Coordination Point

WHAT: Facade tying domain registry, workflow execution and the hypergraph index
WHERE: hyperd/runtime/orchestrator.py - top of the runtime stack
WHO: HyperdAPI and in-process callers
TIME: Workflow latency ≈ critical path of domain calls; queries are in-memory

Two independent paths run through here:
1. Workflows: name + params → WorkflowCatalog → TaskGraph → DomainRegistry calls
2. Cross-domain queries: the HyperGraphIndex, built once from every domain's
   exported feature vectors plus configured hyperedges, answers path and
   propagation queries without touching the TaskGraph machinery.

Execution-time failures abort only the current workflow; the registry and the
index stay intact for subsequent calls.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import HyperdConfig
from ..errors import DuplicateKeyError, EdgeValidationError, HyperdError, UnknownDomainError
from ..graph.attention import AttentionConfig, AttentionPropagator
from ..graph.hypergraph import HyperGraphIndex, NodeKey
from ..graph.paths import CrossDomainPathFinder
from .caps import normalize_query
from .models import (
    DEFAULT_EDGE_SPECS,
    CrossDomainQueryResult,
    EdgeBuildReport,
    ExportedState,
    HyperEdgeSpec,
    InsightsPayload,
    PathPayload,
    PropagationPayload,
    WorkflowResult,
)
from .registry import DomainRegistry, DomainService
from .telemetry import (
    SPAN_CROSS_DOMAIN_QUERY,
    SPAN_INDEX_BUILD,
    SPAN_PROPAGATE,
    SPAN_WORKFLOW_EXECUTE,
    NoOpTelemetryClient,
    TelemetryClient,
)
from .workflows import WorkflowCatalog

logger = logging.getLogger(__name__)

ANALYTICS_OPERATIONS: Dict[str, str] = {
    "scm": "getERPSCMAnalysis",
    "crm": "getCRMAnalytics",
    "mrp": "getMRPAnalytics",
    "lms": "getLMSAnalytics",
}


class HyperdOrchestrator:
    """Coordinates domain services, workflows and the cross-domain index."""

    def __init__(
        self,
        *,
        config: HyperdConfig | None = None,
        registry: DomainRegistry | None = None,
        index: HyperGraphIndex | None = None,
        catalog: WorkflowCatalog | None = None,
        telemetry: TelemetryClient | None = None,
        edge_specs: Iterable[HyperEdgeSpec] | None = None,
    ) -> None:
        cfg = config or HyperdConfig()
        self._config = cfg
        self._telemetry = telemetry or NoOpTelemetryClient()
        self._registry = registry or DomainRegistry(call_timeout_s=cfg.call_timeout_s)
        self._index = index or HyperGraphIndex(
            cfg.dimension,
            attention=AttentionPropagator(
                AttentionConfig(
                    dimension=cfg.dimension,
                    num_heads=cfg.attention_heads,
                    seed=cfg.attention_seed,
                    init_scale=cfg.attention_init_scale,
                )
            ),
            self_weight=cfg.propagation_self_weight,
        )
        self._catalog = catalog or WorkflowCatalog(
            registry=self._registry,
            telemetry=self._telemetry,
            max_concurrency=cfg.max_concurrency,
        )
        self._edge_specs: List[HyperEdgeSpec] = list(
            DEFAULT_EDGE_SPECS if edge_specs is None else edge_specs
        )
        self._initialized = False

    @property
    def config(self) -> HyperdConfig:
        return self._config

    @property
    def registry(self) -> DomainRegistry:
        return self._registry

    @property
    def index(self) -> HyperGraphIndex:
        return self._index

    @property
    def catalog(self) -> WorkflowCatalog:
        return self._catalog

    @property
    def telemetry(self) -> TelemetryClient:
        return self._telemetry

    @property
    def initialized(self) -> bool:
        return self._initialized

    def register_domain(self, name: str, service: DomainService) -> None:
        self._registry.register(name, service)

    # ---------------------- index build ----------------------
    def initialize_hypergraph(self) -> EdgeBuildReport:
        """Full (re)build: ingest every domain's feature vectors, then create cross-domain edges."""

        staged = self._index.staging()
        with self._telemetry.span(SPAN_INDEX_BUILD, attributes={"domains": len(self._registry)}) as span:
            with staged.building():
                for domain, service in self._registry.items():
                    self._ingest_domain(staged, domain, service.export_feature_vectors())
                report = self._create_edges(staged, self._edge_specs)
            span.set_attribute("nodes", len(staged))
            span.set_attribute("edges", staged.edge_count)
        # the serving index is only replaced once the staged build succeeded
        self._index.adopt(staged)
        self._initialized = True
        logger.info(
            f"Hypergraph initialized: {len(self._index)} nodes from {len(self._registry)} domains, "
            f"{len(report.created)} edges ({len(report.rejected)} rejected)"
        )
        return report

    def _ingest_domain(self, index: HyperGraphIndex, domain: str, exported: Mapping[str, Any]) -> int:
        count = 0
        for entity_id, value in exported.items():
            if isinstance(value, Mapping):
                for sub_id, sub_vector in value.items():
                    index.add_node(domain, f"{entity_id}:{sub_id}", sub_vector)
                    count += 1
            else:
                index.add_node(domain, str(entity_id), value)
                count += 1
        logger.debug(f"Ingested {count} nodes from domain {domain}")
        return count

    def _create_edges(self, index: HyperGraphIndex, specs: Iterable[HyperEdgeSpec]) -> EdgeBuildReport:
        report = EdgeBuildReport()
        for spec in specs:
            try:
                index.add_hyper_edge(spec.id, spec.nodes, spec.type, spec.weight, spec.metadata)
            except (EdgeValidationError, DuplicateKeyError) as exc:
                logger.warning(f"Failed to create hyperedge {spec.id}: {exc.message}")
                report.rejected[spec.id] = exc.message
                continue
            report.created.append(spec.id)
        return report

    def create_cross_domain_edges(
        self,
        specs: Optional[Iterable[HyperEdgeSpec]] = None,
    ) -> EdgeBuildReport:
        """Add hyperedges to an initialized index. `None` retries the configured specs."""

        self.ensure_initialized()
        specs = list(self._edge_specs if specs is None else specs)
        with self._index.building():
            report = self._create_edges(self._index, specs)
        known = {s.id for s in self._edge_specs}
        self._edge_specs.extend(s for s in specs if s.id in report.created and s.id not in known)
        return report

    def rebuild_index(self) -> EdgeBuildReport:
        return self.initialize_hypergraph()

    def ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize_hypergraph()

    # ---------------------- workflows ----------------------
    async def execute_workflow(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> WorkflowResult:
        graph = self._catalog.build_graph(name, params)
        attributes = {"workflow": name, "node_count": len(graph)}
        with self._telemetry.span(SPAN_WORKFLOW_EXECUTE, attributes=attributes) as span:
            results = await graph.execute(self._registry)
            span.set_attribute("completed", len(results))
        logger.info(f"Workflow {name} completed: {len(results)} nodes")
        return WorkflowResult(workflow=name, per_node_results=results)

    def describe_workflows(self) -> List[Dict[str, Any]]:
        return self._catalog.describe()

    # ---------------------- queries ----------------------
    def cross_domain_query(
        self,
        source_domain: str,
        source_entity: str,
        target_domain: str,
        max_hops: Optional[int] = None,
    ) -> CrossDomainQueryResult:
        self.ensure_initialized()
        caps, reasons = normalize_query(
            {
                "source": source_domain,
                "entity": source_entity,
                "target": target_domain,
                "hops": max_hops,
            },
            self._config,
        )
        source = NodeKey(caps.source_domain, caps.source_entity)
        attributes = {"source": str(source), "target_domain": caps.target_domain, "max_hops": caps.max_hops}
        with self._telemetry.span(SPAN_CROSS_DOMAIN_QUERY, attributes=attributes) as span:
            finder = CrossDomainPathFinder(
                self._index,
                max_paths=caps.max_paths,
                max_expansions=self._config.max_expansions,
            )
            found = finder.find_paths(source, caps.target_domain, caps.max_hops)
            span.set_attribute("paths_found", found.paths_found)
            span.set_attribute("expansions", found.expansions)

        return CrossDomainQueryResult(
            source_domain=caps.source_domain,
            source_entity=caps.source_entity,
            target_domain=caps.target_domain,
            max_hops=caps.max_hops,
            paths_found=found.paths_found,
            paths=[
                PathPayload(path=p.as_strings(), length=p.length, domains=p.domains)
                for p in found.paths
            ],
            reasons=reasons + found.reasons,
            latency_ms=found.latency_ms,
        )

    def propagate(self, domain: str, entity_id: str, hops: int = 2) -> PropagationPayload:
        self.ensure_initialized()
        source = NodeKey(domain, entity_id)
        with self._telemetry.span(SPAN_PROPAGATE, attributes={"source": str(source), "hops": hops}) as span:
            result = self._index.propagate(source, hops)
            span.set_attribute("nodes_visited", result.nodes_visited)
        return PropagationPayload(
            node_id=str(result.source),
            embedding=result.vector.to_list(),
            hops_completed=result.hops_completed,
            nodes_visited=result.nodes_visited,
            contributors=result.contributors,
        )

    # ---------------------- insights / export ----------------------
    def get_unified_insights(self) -> InsightsPayload:
        self.ensure_initialized()
        summary = self._index.insights()
        per_domain: Dict[str, Any] = {}
        for name, service in self._registry.items():
            domain_summary = service.get_summary()
            if domain_summary is not None:
                per_domain[name] = domain_summary
        return InsightsPayload(
            node_counts=summary["node_counts"],
            edge_type_counts=summary["edge_type_counts"],
            per_domain_summaries=per_domain,
            total_nodes=summary["total_nodes"],
            total_edges=summary["total_edges"],
            mean_edge_arity=summary["mean_edge_arity"],
            total_domains=len(self._registry),
            initialized=self._initialized,
        )

    async def get_domain_analytics(self, domain: str) -> Any:
        if domain not in self._registry:
            raise UnknownDomainError(domain)
        operation = ANALYTICS_OPERATIONS.get(domain, "getAnalytics")
        return await self._registry.call(domain, operation, [])

    async def get_enterprise_dashboard(self) -> Dict[str, Any]:
        """Analytics from every domain plus index insights; per-domain errors are kept inline."""

        domains: Dict[str, Any] = {}
        for name in self._registry.names():
            try:
                domains[name] = await self.get_domain_analytics(name)
            except HyperdError as exc:
                domains[name] = exc.to_payload()
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "domains": domains,
            "hyperGraph": self.get_unified_insights().to_payload(),
        }

    def export_state(self) -> ExportedState:
        exported = self._index.export()
        return ExportedState(
            nodes=exported["nodes"],
            edges=exported["edges"],
            domains=self._registry.names(),
            initialized=self._initialized,
        )


__all__ = ["HyperdOrchestrator", "ANALYTICS_OPERATIONS"]
