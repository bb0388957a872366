"""
Task Graph - Dependency-Ordered Execution of Domain Operations

WHAT: DAG of (domain, operation, args, inputs) task nodes with cycle detection
WHERE: hyperd/runtime/task_graph.py - built by WorkflowCatalog, run once
WHO: HyperdOrchestrator.execute_workflow
TIME: Wall time ≈ critical path of domain calls when siblings run concurrently

Ordering:
- `build_order()` is a depth-first topological sort visiting nodes in insertion
  order. A node revisited while still on the DFS stack names the cycle.
- `execute()` uses a readiness-count scheduler: a node starts once all of its
  inputs completed, and nodes that become ready together start in insertion
  order. Input results are passed after the node's static args.

Failure:
- Unknown input ids and cycles are reported before any node runs.
- The first failing node stops the scheduler: nothing further is started,
  nodes already running finish but their results are left out of the report,
  and the error carries `node_id` plus the partial result map.

Boundary Notes:
- Unknown domains fail at execution time (registry population may be deferred)
- A TaskGraph executes at most once
"""

from __future__ import annotations

import asyncio
import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..errors import DuplicateKeyError, GraphCycleError, HyperdError, OperationFailure, UnknownNodeError
from .registry import DomainRegistry
from .telemetry import SPAN_TASK_EXECUTE, NoOpTelemetryClient, TelemetryClient

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class TaskNode:
    """One domain operation call inside a TaskGraph."""

    node_id: str
    domain: str
    operation: str
    inputs: List[str] = field(default_factory=list)
    args: Tuple[Any, ...] = ()
    outputs: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: Optional[str] = None

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.node_id,
            "domain": self.domain,
            "operation": self.operation,
            "args": list(self.args),
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "status": self.status.value,
        }


class TaskGraph:
    """
    Single-use DAG of domain operation calls.

    Args:
        registry: Registry used to dispatch node operations
        max_concurrency: Max nodes running at once (None = unbounded, 1 = sequential)
        telemetry: Span sink for per-node execution
    """

    def __init__(
        self,
        registry: Optional[DomainRegistry] = None,
        *,
        max_concurrency: Optional[int] = None,
        telemetry: Optional[TelemetryClient] = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._registry = registry
        self._max_concurrency = max_concurrency
        self._telemetry = telemetry or NoOpTelemetryClient()
        self._nodes: Dict[str, TaskNode] = {}
        self._order: Optional[List[str]] = None
        self._executed = False

    # ---------------------- construction ----------------------
    def add_node(
        self,
        node_id: str,
        domain: str,
        operation: str,
        inputs: Sequence[str] = (),
        args: Sequence[Any] = (),
    ) -> TaskNode:
        """Add a node. Inputs may reference nodes added later; they are checked at build time."""

        if node_id in self._nodes:
            raise DuplicateKeyError("Task node", node_id)
        node = TaskNode(
            node_id=node_id,
            domain=domain,
            operation=operation,
            inputs=list(inputs),
            args=tuple(args),
        )
        for input_id in node.inputs:
            upstream = self._nodes.get(input_id)
            if upstream is not None and node_id not in upstream.outputs:
                upstream.outputs.append(node_id)
        # Earlier nodes that forward-referenced this id
        for other in self._nodes.values():
            if node_id in other.inputs and other.node_id not in node.outputs:
                node.outputs.append(other.node_id)

        self._nodes[node_id] = node
        self._order = None
        return node

    def add_dependency(self, node_id: str, input_id: str) -> None:
        """Make `node_id` consume the result of `input_id`."""

        node = self.get_node(node_id)
        upstream = self.get_node(input_id)
        if input_id not in node.inputs:
            node.inputs.append(input_id)
        if node_id not in upstream.outputs:
            upstream.outputs.append(node_id)
        self._order = None

    def get_node(self, node_id: str) -> TaskNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    @property
    def nodes(self) -> List[TaskNode]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ---------------------- ordering ----------------------
    def build_order(self) -> List[str]:
        """Topological order (memoized). Raises UnknownNodeError or GraphCycleError."""

        if self._order is not None:
            return list(self._order)

        for node in self._nodes.values():
            for input_id in node.inputs:
                if input_id not in self._nodes:
                    raise UnknownNodeError(
                        input_id,
                        f"Task {node.node_id} references unknown input: {input_id}",
                    )

        visited: set[str] = set()
        temp_mark: List[str] = []  # current DFS stack
        order: List[str] = []

        def visit(node_id: str) -> None:
            if node_id in temp_mark:
                cycle = temp_mark[temp_mark.index(node_id):] + [node_id]
                raise GraphCycleError(node_id, cycle)
            if node_id in visited:
                return
            temp_mark.append(node_id)
            for input_id in self._nodes[node_id].inputs:
                visit(input_id)
            temp_mark.pop()
            visited.add(node_id)
            order.append(node_id)

        for node_id in self._nodes:
            if node_id not in visited:
                visit(node_id)

        self._order = order
        return list(order)

    def execution_plan(self) -> List[Dict[str, Any]]:
        return [self._nodes[nid].describe() for nid in self.build_order()]

    def statuses(self) -> Dict[str, str]:
        return {nid: node.status.value for nid, node in self._nodes.items()}

    def export(self) -> Dict[str, Any]:
        return {
            "nodes": [node.describe() for node in self._nodes.values()],
            "executionOrder": list(self._order or []),
        }

    # ---------------------- execution ----------------------
    async def execute(self, registry: Optional[DomainRegistry] = None) -> Dict[str, Any]:
        """
        Run every node once, in dependency order.

        Returns:
            {node_id: result} in topological order

        Raises:
            GraphCycleError / UnknownNodeError: before anything runs
            UnknownDomainError / UnknownOperationError / OperationFailure: from the
                first failing node, with `node_id` and `partial_results` set
        """
        if self._executed:
            raise RuntimeError("TaskGraph has already been executed")
        reg = registry or self._registry
        if reg is None:
            raise ValueError("TaskGraph.execute requires a DomainRegistry")

        order = self.build_order()
        self._executed = True

        position = {nid: i for i, nid in enumerate(self._nodes)}
        remaining = {nid: len(set(node.inputs)) for nid, node in self._nodes.items()}
        ready: List[Tuple[int, str]] = [(position[nid], nid) for nid, n in remaining.items() if n == 0]
        heapq.heapify(ready)
        limit = self._max_concurrency or len(self._nodes) or 1

        results: Dict[str, Any] = {}
        running: Dict[asyncio.Task, str] = {}
        failure: Optional[HyperdError] = None
        failed_node: Optional[str] = None

        while ready or running:
            while ready and len(running) < limit:
                _, nid = heapq.heappop(ready)
                node = self._nodes[nid]
                node.status = TaskStatus.RUNNING
                inputs = [results[i] for i in node.inputs]
                task = asyncio.create_task(self._run_node(reg, node, inputs))
                running[task] = nid

            done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
            for task in sorted(done, key=lambda t: position[running[t]]):
                nid = running.pop(task)
                node = self._nodes[nid]
                exc = task.exception()
                if exc is not None:
                    node.status = TaskStatus.FAILED
                    node.error = str(exc)
                    if failure is None:
                        failure = exc if isinstance(exc, HyperdError) else OperationFailure(
                            node.domain, node.operation, str(exc)
                        )
                        if failure is not exc:
                            failure.__cause__ = exc
                        failed_node = nid
                    continue

                node.status = TaskStatus.COMPLETED
                node.result = task.result()
                if failure is not None:
                    # Finished after the abort; excluded from the report
                    continue
                results[nid] = node.result
                for dependent in node.outputs:
                    remaining[dependent] -= 1
                    if remaining[dependent] == 0:
                        heapq.heappush(ready, (position[dependent], dependent))

            if failure is not None:
                ready.clear()

        if failure is not None:
            failure.node_id = failed_node
            failure.partial_results = {nid: results[nid] for nid in order if nid in results}
            logger.warning(
                f"Task graph aborted at {failed_node}: {failure.message} "
                f"({len(failure.partial_results)}/{len(order)} nodes completed)"
            )
            raise failure

        return {nid: results[nid] for nid in order}

    async def _run_node(self, registry: DomainRegistry, node: TaskNode, inputs: List[Any]) -> Any:
        attributes = {
            "node_id": node.node_id,
            "domain": node.domain,
            "operation": node.operation,
            "input_count": len(inputs),
        }
        with self._telemetry.span(SPAN_TASK_EXECUTE, attributes=attributes):
            return await registry.call(node.domain, node.operation, [*node.args, *inputs])


__all__ = ["TaskStatus", "TaskNode", "TaskGraph"]
