"""
Domain Registry - Explicit Dispatch to Domain Services

WHAT: Maps domain names to service handles and dispatches named operations
WHERE: hyperd/runtime/registry.py - leaf of the runtime stack
WHO: TaskGraph nodes, HyperdOrchestrator analytics and index ingestion
TIME: Dispatch overhead negligible; latency is the service's concern

Operations are looked up in an explicit per-service table and invoked with an
explicit argument list. Nothing is parsed out of operation strings. The
registry performs no retries and no caching. An optional per-call timeout is
enforced here and surfaces as an ordinary OperationFailure.

Boundary Notes:
- `call` is the only suspension point of task execution
- Services must not share mutable state across concurrent invocations
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import (
    HyperdError,
    OperationFailure,
    UnknownDomainError,
    UnknownOperationError,
)

logger = logging.getLogger(__name__)

Operation = Callable[..., Any]


class DomainService:
    """
    Base domain service handle.

    Subclasses expose an explicit operation table and, when they own
    entities, their per-entity feature vectors. Operations may be plain or
    async callables.
    """

    def operations(self) -> Mapping[str, Operation]:
        raise NotImplementedError

    def export_feature_vectors(self) -> Mapping[str, Any]:
        """Return {entity_id: vector} or {entity_id: {sub_id: vector}}."""
        return {}

    def get_summary(self) -> Optional[Dict[str, Any]]:
        return None


class StaticDomainService(DomainService):
    """In-memory service built from an operation dict and exported vectors."""

    def __init__(
        self,
        operations: Optional[Mapping[str, Operation]] = None,
        *,
        feature_vectors: Optional[Mapping[str, Any]] = None,
        summary: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._operations: Dict[str, Operation] = dict(operations or {})
        self._feature_vectors = dict(feature_vectors or {})
        self._summary = summary

    def operations(self) -> Mapping[str, Operation]:
        return self._operations

    def export_feature_vectors(self) -> Mapping[str, Any]:
        return self._feature_vectors

    def get_summary(self) -> Optional[Dict[str, Any]]:
        return dict(self._summary) if self._summary is not None else None


class DomainRegistry:
    """Name → service lookup with async dispatch."""

    def __init__(self, *, call_timeout_s: Optional[float] = None) -> None:
        self._services: Dict[str, DomainService] = {}
        self._call_timeout_s = call_timeout_s

    def register(self, name: str, service: DomainService) -> None:
        if name in self._services:
            logger.info(f"Replacing domain service registration: {name}")
        self._services[name] = service

    def unregister(self, name: str) -> None:
        if name not in self._services:
            raise UnknownDomainError(name)
        del self._services[name]

    def get(self, name: str) -> DomainService:
        try:
            return self._services[name]
        except KeyError:
            raise UnknownDomainError(name) from None

    def names(self) -> List[str]:
        return list(self._services)

    def items(self) -> List[tuple[str, DomainService]]:
        return list(self._services.items())

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def __len__(self) -> int:
        return len(self._services)

    async def call(self, domain: str, operation: str, args: Sequence[Any] = ()) -> Any:
        """
        Invoke `operation` on the `domain` service with `args`.

        Raises:
            UnknownDomainError: domain was never registered
            UnknownOperationError: the service has no such operation
            OperationFailure: the operation raised, rejected, or timed out
        """
        service = self.get(domain)
        fn = service.operations().get(operation)
        if fn is None:
            raise UnknownOperationError(domain, operation)

        try:
            result = fn(*args)
            if inspect.isawaitable(result):
                if self._call_timeout_s is not None:
                    result = await asyncio.wait_for(result, timeout=self._call_timeout_s)
                else:
                    result = await result
        except HyperdError:
            raise
        except asyncio.TimeoutError as exc:
            raise OperationFailure(
                domain, operation, f"timed out after {self._call_timeout_s}s"
            ) from exc
        except Exception as exc:
            raise OperationFailure(domain, operation, str(exc) or type(exc).__name__) from exc
        return result


__all__ = [
    "DomainService",
    "StaticDomainService",
    "DomainRegistry",
]
