"""
Runtime Spans - Timing and Outcome of Orchestrator Work

WHAT: Named spans around task dispatch, workflow runs, index builds and queries
WHERE: hyperd/runtime/telemetry.py - observability layer
WHO: TaskGraph, HyperdOrchestrator
TIME: Zero-overhead when disabled, <0.1ms overhead when enabled

A span closes into one SpanRecord carrying its attributes, duration and
outcome. Failed spans record the `kind` of the HyperdError that closed them
(or the exception class name for anything else); the exception itself always
propagates.

Sinks override `record` to receive the SpanRecord, or `emit_span` to receive a
flat attribute dict with `success`, `error_kind` and `duration_ms` folded in.
"""

from __future__ import annotations

import logging
import time
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SPAN_TASK_EXECUTE = "hyperd.task_execute"  # one per TaskNode dispatch
SPAN_WORKFLOW_EXECUTE = "hyperd.workflow_execute"
SPAN_INDEX_BUILD = "hyperd.index_build"  # one per staged (re)build
SPAN_CROSS_DOMAIN_QUERY = "hyperd.cross_domain_query"
SPAN_PROPAGATE = "hyperd.propagate"

SPAN_NAMES = (
    SPAN_TASK_EXECUTE,
    SPAN_WORKFLOW_EXECUTE,
    SPAN_INDEX_BUILD,
    SPAN_CROSS_DOMAIN_QUERY,
    SPAN_PROPAGATE,
)


@dataclass(frozen=True, slots=True)
class SpanRecord:
    """Closed span as handed to a sink."""

    name: str
    duration_ms: float
    success: bool
    error_kind: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def flat(self) -> Dict[str, Any]:
        merged = dict(self.attributes)
        merged["success"] = self.success
        if self.error_kind is not None:
            merged["error_kind"] = self.error_kind
        merged["duration_ms"] = self.duration_ms
        return merged


def error_kind_of(exc: BaseException) -> str:
    return getattr(exc, "kind", None) or type(exc).__name__


class TelemetrySpan(AbstractContextManager["TelemetrySpan"]):
    """Open span; attributes may be added until the block exits."""

    def __init__(
        self,
        client: "TelemetryClient",
        name: str,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._client = client
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes or {})
        self._start: Optional[float] = None

    def __enter__(self) -> "TelemetrySpan":
        self._start = time.perf_counter()
        return self

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def __exit__(self, exc_type, exc, exc_tb) -> bool:
        if self._start is None:
            raise RuntimeError(f"Span {self.name} exited without being entered")
        record = SpanRecord(
            name=self.name,
            duration_ms=(time.perf_counter() - self._start) * 1000.0,
            success=exc is None,
            error_kind=None if exc is None else error_kind_of(exc),
            attributes=dict(self.attributes),
        )
        self._client.record(record)
        return False


class TelemetryClient:
    """Base span sink; override `record` or `emit_span`."""

    def span(
        self,
        name: str,
        *,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> TelemetrySpan:
        return TelemetrySpan(self, name, attributes)

    def record(self, record: SpanRecord) -> None:
        self.emit_span(record.name, record.flat())

    def emit_span(self, name: str, attributes: Dict[str, Any]) -> None:
        raise NotImplementedError


class NoOpTelemetryClient(TelemetryClient):
    """Discards every span."""

    def record(self, record: SpanRecord) -> None:
        pass


class LoggingTelemetryClient(TelemetryClient):
    """
    Writes one log record per span.

    Successful spans are logged at `level`; failed spans at `failure_level`
    with their error kind in the message.
    """

    def __init__(self, level: int = logging.INFO, failure_level: int = logging.WARNING) -> None:
        self.level = level
        self.failure_level = failure_level

    def record(self, record: SpanRecord) -> None:
        payload = {k: record.attributes[k] for k in sorted(record.attributes)}
        if record.success:
            logger.log(self.level, f"[telemetry] {record.name} ok {record.duration_ms:.1f}ms {payload}")
        else:
            logger.log(
                self.failure_level,
                f"[telemetry] {record.name} failed ({record.error_kind}) "
                f"{record.duration_ms:.1f}ms {payload}",
            )


__all__ = [
    "SPAN_TASK_EXECUTE",
    "SPAN_WORKFLOW_EXECUTE",
    "SPAN_INDEX_BUILD",
    "SPAN_CROSS_DOMAIN_QUERY",
    "SPAN_PROPAGATE",
    "SPAN_NAMES",
    "SpanRecord",
    "TelemetrySpan",
    "TelemetryClient",
    "NoOpTelemetryClient",
    "LoggingTelemetryClient",
]
