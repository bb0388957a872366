"""
Hyperd API - Structured Payload Boundary

WHAT: Entry points returning plain dict payloads, success or {kind, message}
WHERE: hyperd/runtime/api.py - outermost in-process surface
WHO: Transport adapters (HTTP handlers, RPC workers, CLIs)
TIME: Adds only serialization on top of HyperdOrchestrator

Every method returns either the success payload or an ErrorPayload with a
stable `kind`. Workflow failures also carry `nodeId` and the `perNodeResults`
completed before the abort. Domain results are opaque: numpy values become
lists or scalars and other unknown objects are reported by `repr`. Unexpected
exceptions are logged with their traceback and reported as kind
`internal_error`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from ..errors import HyperdError
from .caps import normalize_query
from .models import ErrorPayload, jsonable
from .orchestrator import HyperdOrchestrator

logger = logging.getLogger(__name__)


def _error(exc: HyperdError) -> Dict[str, Any]:
    payload = ErrorPayload(kind=exc.kind, message=exc.message)
    if exc.node_id is not None:
        payload.node_id = exc.node_id
        payload.per_node_results = dict(exc.partial_results)
    return payload.to_payload()


def _internal(exc: Exception, where: str) -> Dict[str, Any]:
    logger.exception(f"Unexpected error in {where}")
    return ErrorPayload(kind="internal_error", message=str(exc) or type(exc).__name__).to_payload()


class HyperdAPI:
    """Thin boundary over HyperdOrchestrator."""

    def __init__(self, orchestrator: HyperdOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def execute_workflow(self, name: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        try:
            result = await self.orchestrator.execute_workflow(name, params or {})
            return result.to_payload()
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "execute_workflow")

    def cross_domain_query(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """`params`: source, entity, target, optional hops (query-string style)."""

        try:
            caps, _ = normalize_query(params, self.orchestrator.config)
            raw_hops = params.get("hops")
            hops = None if raw_hops in (None, "") else int(raw_hops)
        except (TypeError, ValueError) as exc:
            return ErrorPayload(kind="invalid_parameters", message=str(exc)).to_payload()
        try:
            # Unclamped hops so the orchestrator reports its own clamp reasons
            result = self.orchestrator.cross_domain_query(
                caps.source_domain,
                caps.source_entity,
                caps.target_domain,
                hops,
            )
            return result.to_payload()
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "cross_domain_query")

    def propagate(self, domain: str, entity_id: str, hops: int = 2) -> Dict[str, Any]:
        try:
            return self.orchestrator.propagate(domain, entity_id, hops).to_payload()
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "propagate")

    def get_unified_insights(self) -> Dict[str, Any]:
        try:
            return self.orchestrator.get_unified_insights().to_payload()
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "get_unified_insights")

    async def get_domain_analytics(self, domain: str) -> Dict[str, Any]:
        try:
            analytics = await self.orchestrator.get_domain_analytics(domain)
            return {"domain": domain, "analytics": jsonable(analytics)}
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "get_domain_analytics")

    async def get_enterprise_dashboard(self) -> Dict[str, Any]:
        try:
            return jsonable(await self.orchestrator.get_enterprise_dashboard())
        except HyperdError as exc:
            return _error(exc)
        except Exception as exc:
            return _internal(exc, "get_enterprise_dashboard")

    def list_domains(self) -> Dict[str, Any]:
        return {"domains": self.orchestrator.registry.names()}

    def list_workflows(self) -> Dict[str, Any]:
        return {"workflows": self.orchestrator.describe_workflows()}

    def export_state(self) -> Dict[str, Any]:
        try:
            return self.orchestrator.export_state().to_payload()
        except Exception as exc:
            return _internal(exc, "export_state")


__all__ = ["HyperdAPI"]
