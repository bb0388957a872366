import asyncio

import pytest

from hyperd.errors import (
    DuplicateKeyError,
    GraphCycleError,
    OperationFailure,
    UnknownDomainError,
    UnknownNodeError,
)
from hyperd.runtime.registry import DomainRegistry, StaticDomainService
from hyperd.runtime.task_graph import TaskGraph, TaskStatus
from hyperd.runtime.telemetry import TelemetryClient


class CaptureTelemetryClient(TelemetryClient):
    def __init__(self) -> None:
        self.spans: list[tuple[str, dict]] = []

    def emit_span(self, name: str, attributes: dict) -> None:
        self.spans.append((name, attributes))


class RecordingService(StaticDomainService):
    """Records call order; `join` concatenates its arguments."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        super().__init__(
            {
                "value": self._value,
                "join": self._join,
                "boom": self._boom,
                "slow": self._slow,
            }
        )

    def _value(self, *args):
        self.calls.append(("value", args))
        return args[0] if args else "v"

    def _join(self, *args):
        self.calls.append(("join", args))
        return "+".join(str(a) for a in args)

    def _boom(self, *args):
        self.calls.append(("boom", args))
        raise RuntimeError("exploded")

    async def _slow(self, *args):
        self.calls.append(("slow", args))
        await asyncio.sleep(0.01)
        return "slow"


def make_registry() -> tuple[DomainRegistry, RecordingService]:
    registry = DomainRegistry()
    service = RecordingService()
    registry.register("d", service)
    return registry, service


def test_build_order_follows_insertion():
    graph = TaskGraph()
    graph.add_node("A", "d", "value")
    graph.add_node("B", "d", "value")
    graph.add_node("C", "d", "join", inputs=["A", "B"])

    assert graph.build_order() == ["A", "B", "C"]
    assert graph.get_node("A").outputs == ["C"]


def test_back_edge_is_a_cycle():
    registry, service = make_registry()
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "value")
    graph.add_node("B", "d", "value")
    graph.add_node("C", "d", "join", inputs=["A", "B"])
    graph.add_dependency("A", "C")

    with pytest.raises(GraphCycleError) as excinfo:
        graph.build_order()
    assert excinfo.value.kind == "graph_cycle"
    assert excinfo.value.cycle[0] == excinfo.value.cycle[-1]

    with pytest.raises(GraphCycleError):
        asyncio.run(graph.execute())
    assert service.calls == []


def test_forward_reference_resolves_at_build_time():
    graph = TaskGraph()
    graph.add_node("C", "d", "join", inputs=["A"])
    graph.add_node("A", "d", "value")

    assert graph.build_order() == ["A", "C"]
    assert graph.get_node("A").outputs == ["C"]


def test_unknown_input_is_reported():
    graph = TaskGraph()
    graph.add_node("C", "d", "join", inputs=["missing"])

    with pytest.raises(UnknownNodeError) as excinfo:
        graph.build_order()
    assert "missing" in excinfo.value.message


def test_duplicate_node_and_unknown_lookup():
    graph = TaskGraph()
    graph.add_node("A", "d", "value")

    with pytest.raises(DuplicateKeyError):
        graph.add_node("A", "d", "value")
    with pytest.raises(UnknownNodeError):
        graph.get_node("Z")
    with pytest.raises(UnknownNodeError):
        graph.add_dependency("A", "Z")


def test_execute_passes_args_then_input_results():
    registry, service = make_registry()
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "value", args=["a"])
    graph.add_node("B", "d", "value", args=["b"])
    graph.add_node("C", "d", "join", inputs=["A", "B"], args=["c"])

    results = asyncio.run(graph.execute())

    assert list(results) == ["A", "B", "C"]
    assert results["C"] == "c+a+b"
    assert graph.statuses() == {"A": "completed", "B": "completed", "C": "completed"}
    assert graph.export()["executionOrder"] == ["A", "B", "C"]


def test_sequential_execution_uses_insertion_order():
    registry, service = make_registry()
    graph = TaskGraph(registry, max_concurrency=1)
    graph.add_node("late", "d", "join", inputs=["x", "y"])
    graph.add_node("x", "d", "value", args=["x"])
    graph.add_node("y", "d", "value", args=["y"])

    asyncio.run(graph.execute())

    assert [args for _, args in service.calls] == [("x",), ("y",), ("x", "y")]


def test_failure_reports_node_and_partial_results():
    registry, service = make_registry()
    graph = TaskGraph(registry, max_concurrency=1)
    graph.add_node("A", "d", "value", args=["a"])
    graph.add_node("B", "d", "boom", inputs=["A"])
    graph.add_node("C", "d", "join", inputs=["B"])

    with pytest.raises(OperationFailure) as excinfo:
        asyncio.run(graph.execute())

    err = excinfo.value
    assert err.node_id == "B"
    assert err.partial_results == {"A": "a"}
    assert isinstance(err.__cause__, RuntimeError)
    assert graph.get_node("B").status is TaskStatus.FAILED
    assert graph.get_node("C").status is TaskStatus.PENDING
    assert [name for name, _ in service.calls] == ["value", "boom"]


def test_unknown_domain_fails_at_execution():
    registry, _ = make_registry()
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "value")
    graph.add_node("B", "nowhere", "value", inputs=["A"])

    assert graph.build_order() == ["A", "B"]
    with pytest.raises(UnknownDomainError) as excinfo:
        asyncio.run(graph.execute())
    assert excinfo.value.node_id == "B"
    assert excinfo.value.partial_results == {"A": "v"}


def test_concurrent_siblings_complete():
    registry, _ = make_registry()
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "slow")
    graph.add_node("B", "d", "slow")
    graph.add_node("C", "d", "join", inputs=["A", "B"])

    results = asyncio.run(graph.execute())

    assert results == {"A": "slow", "B": "slow", "C": "slow+slow"}


def test_graph_executes_once():
    registry, _ = make_registry()
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "value")
    asyncio.run(graph.execute())

    with pytest.raises(RuntimeError):
        asyncio.run(graph.execute())


def test_execute_requires_registry():
    graph = TaskGraph()
    graph.add_node("A", "d", "value")

    with pytest.raises(ValueError):
        asyncio.run(graph.execute())


def test_task_spans_are_emitted():
    registry, _ = make_registry()
    telemetry = CaptureTelemetryClient()
    graph = TaskGraph(registry, telemetry=telemetry)
    graph.add_node("A", "d", "value")
    graph.add_node("B", "d", "boom", inputs=["A"])

    with pytest.raises(OperationFailure):
        asyncio.run(graph.execute())

    names = [name for name, _ in telemetry.spans]
    assert names == ["hyperd.task_execute", "hyperd.task_execute"]
    assert telemetry.spans[0][1]["success"] is True
    assert telemetry.spans[1][1]["success"] is False
    assert telemetry.spans[1][1]["error_kind"] == "operation_failure"


def test_running_sibling_finishes_but_is_left_out_of_report():
    calls: list[str] = []

    async def slow_value():
        calls.append("slow")
        await asyncio.sleep(0.05)
        return "a"

    async def quick_failure():
        calls.append("quick")
        await asyncio.sleep(0.01)
        raise RuntimeError("rejected")

    def combine(*args):
        calls.append("combine")
        return args

    registry = DomainRegistry()
    registry.register("d", StaticDomainService({"slow": slow_value, "quick": quick_failure, "combine": combine}))
    graph = TaskGraph(registry)
    graph.add_node("A", "d", "slow")
    graph.add_node("B", "d", "quick")
    graph.add_node("C", "d", "combine", inputs=["A", "B"])

    with pytest.raises(OperationFailure) as excinfo:
        asyncio.run(graph.execute())

    assert excinfo.value.node_id == "B"
    assert excinfo.value.partial_results == {}
    assert graph.statuses() == {"A": "completed", "B": "failed", "C": "pending"}
    assert graph.get_node("A").result == "a"
    assert calls == ["slow", "quick"]
