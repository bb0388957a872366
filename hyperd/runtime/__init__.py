"""
Runtime Orchestration Module

WHAT: Domain registry, task graph execution, workflow presets and the facade
WHERE: hyperd/runtime/ - orchestration layer above hyperd/graph
WHO: In-process callers and transport adapters (HyperdAPI)
TIME: Workflow latency bounded by domain calls; suspension only at registry calls

Control flow:
    workflow name + params → WorkflowCatalog → TaskGraph → DomainRegistry.call

The hypergraph index is built from exported domain feature vectors and
queried independently of task execution.
"""

from .api import HyperdAPI  # noqa: F401
from .caps import QueryCaps, normalize_query  # noqa: F401
from .orchestrator import ANALYTICS_OPERATIONS, HyperdOrchestrator  # noqa: F401
from .registry import DomainRegistry, DomainService, StaticDomainService  # noqa: F401
from .task_graph import TaskGraph, TaskNode, TaskStatus  # noqa: F401
from .telemetry import (  # noqa: F401
    LoggingTelemetryClient,
    NoOpTelemetryClient,
    SpanRecord,
    TelemetryClient,
    TelemetrySpan,
)
from .workflows import DEFAULT_WORKFLOWS, Workflow, WorkflowCatalog  # noqa: F401

__all__ = [
    "HyperdAPI",
    "QueryCaps",
    "normalize_query",
    "ANALYTICS_OPERATIONS",
    "HyperdOrchestrator",
    "DomainRegistry",
    "DomainService",
    "StaticDomainService",
    "TaskGraph",
    "TaskNode",
    "TaskStatus",
    "LoggingTelemetryClient",
    "NoOpTelemetryClient",
    "SpanRecord",
    "TelemetryClient",
    "TelemetrySpan",
    "DEFAULT_WORKFLOWS",
    "Workflow",
    "WorkflowCatalog",
]
