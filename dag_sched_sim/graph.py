from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional, Sequence

from .errors import ConfigurationError, GraphConstructionError

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True, order=True)
class NodeRef:
    """Identity of a node across a DAG set: owning DAG id plus node index."""

    dag_id: int
    node_index: int


@dataclass(frozen=True, slots=True)
class TaskNode:
    """Immutable task node. ``deadline`` is relative to the DAG release."""

    index: int
    execution_time: int
    deadline: Optional[int] = None
    priority: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not _is_int(self.index) or self.index < 0:
            msg = f"node index must be a non-negative integer, got {self.index!r}"
            raise GraphConstructionError(msg)
        if not _is_int(self.execution_time) or self.execution_time <= 0:
            msg = f"node {self.index}: execution_time must be a positive integer, got {self.execution_time!r}"
            raise GraphConstructionError(msg)
        if self.deadline is not None and (not _is_int(self.deadline) or self.deadline <= 0):
            msg = f"node {self.index}: deadline must be a positive integer, got {self.deadline!r}"
            raise GraphConstructionError(msg)


@dataclass(frozen=True, slots=True)
class TaskEdge:
    """Precedence edge; ``weight`` ticks of latency separate source finish and target start."""

    source: int
    target: int
    weight: int = 0

    def __post_init__(self) -> None:
        if not _is_int(self.weight) or self.weight < 0:
            msg = f"edge {self.source}->{self.target}: weight must be a non-negative integer, got {self.weight!r}"
            raise GraphConstructionError(msg)


class TaskGraph:
    """Immutable DAG of task nodes addressed by their integer index.

    Node indices must be exactly ``0..n-1``. Structural checks (edge
    endpoints, duplicates, cycles) run once here, and the derived timing
    figures are cached, so a constructed graph can always be scheduled.
    """

    def __init__(
        self,
        nodes: Sequence[TaskNode],
        edges: Iterable[TaskEdge] = (),
        *,
        end_to_end_deadline: Optional[int] = None,
        period: Optional[int] = None,
    ) -> None:
        if not nodes:
            msg = "a task graph needs at least one node"
            raise GraphConstructionError(msg)
        ordered = sorted(nodes, key=lambda node: node.index)
        indices = [node.index for node in ordered]
        if indices != list(range(len(ordered))):
            msg = f"node indices must be unique and cover 0..{len(ordered) - 1}, got {indices}"
            raise GraphConstructionError(msg)
        if end_to_end_deadline is not None and (not _is_int(end_to_end_deadline) or end_to_end_deadline <= 0):
            msg = f"end_to_end_deadline must be a positive integer, got {end_to_end_deadline!r}"
            raise ConfigurationError(msg)
        if period is not None and (not _is_int(period) or period <= 0):
            msg = f"period must be a positive integer, got {period!r}"
            raise ConfigurationError(msg)

        self._nodes: tuple[TaskNode, ...] = tuple(ordered)
        self._end_to_end_deadline = end_to_end_deadline
        self._period = period

        count = len(self._nodes)
        preds: list[list[int]] = [[] for _ in range(count)]
        succs: list[list[int]] = [[] for _ in range(count)]
        self._weights: dict[tuple[int, int], int] = {}
        edge_list: list[TaskEdge] = []
        for edge in edges:
            for endpoint in (edge.source, edge.target):
                if not _is_int(endpoint) or not 0 <= endpoint < count:
                    msg = f"edge {edge.source}->{edge.target} references unknown node {endpoint!r}"
                    raise GraphConstructionError(msg)
            if edge.source == edge.target:
                msg = f"self loop on node {edge.source} makes the graph cyclic"
                raise GraphConstructionError(msg)
            key = (edge.source, edge.target)
            if key in self._weights:
                msg = f"duplicate edge {edge.source}->{edge.target}"
                raise GraphConstructionError(msg)
            self._weights[key] = edge.weight
            preds[edge.target].append(edge.source)
            succs[edge.source].append(edge.target)
            edge_list.append(edge)

        self._edges: tuple[TaskEdge, ...] = tuple(edge_list)
        self._preds: tuple[tuple[int, ...], ...] = tuple(tuple(sorted(p)) for p in preds)
        self._succs: tuple[tuple[int, ...], ...] = tuple(tuple(sorted(s)) for s in succs)
        self._topological_order = self._toposort()
        self._finish_times, self._critical_path = self._longest_path()
        self._volume = sum(node.execution_time for node in self._nodes)
        self._critical_path_length = max(self._finish_times)

    @classmethod
    def from_execution_times(
        cls,
        execution_times: Sequence[int],
        edges: Iterable[tuple[int, int] | tuple[int, int, int]] = (),
        *,
        end_to_end_deadline: Optional[int] = None,
        period: Optional[int] = None,
    ) -> TaskGraph:
        """Build a graph from per-node execution times and ``(u, v[, weight])`` tuples."""

        nodes = [TaskNode(index=i, execution_time=wcet) for i, wcet in enumerate(execution_times)]
        task_edges = [TaskEdge(*edge) for edge in edges]
        return cls(nodes, task_edges, end_to_end_deadline=end_to_end_deadline, period=period)

    def _toposort(self) -> tuple[int, ...]:
        in_degree = [len(p) for p in self._preds]
        heap = [index for index, degree in enumerate(in_degree) if degree == 0]
        heapq.heapify(heap)
        order: list[int] = []
        while heap:
            index = heapq.heappop(heap)
            order.append(index)
            for succ in self._succs[index]:
                in_degree[succ] -= 1
                if in_degree[succ] == 0:
                    heapq.heappush(heap, succ)
        if len(order) != len(self._nodes):
            remaining = sorted(set(range(len(self._nodes))) - set(order))
            msg = f"task graph contains a cycle through nodes {remaining}"
            raise GraphConstructionError(msg)
        return tuple(order)

    def _longest_path(self) -> tuple[tuple[int, ...], tuple[int, ...]]:
        finish = [0] * len(self._nodes)
        best_pred: list[Optional[int]] = [None] * len(self._nodes)
        for index in self._topological_order:
            start = 0
            for pred in self._preds[index]:
                candidate = finish[pred] + self._weights[(pred, index)]
                if candidate > start:
                    start = candidate
                    best_pred[index] = pred
            finish[index] = start + self._nodes[index].execution_time

        tail = max(range(len(finish)), key=lambda i: (finish[i], -i))
        path = [tail]
        while best_pred[path[-1]] is not None:
            path.append(best_pred[path[-1]])
        path.reverse()
        return tuple(finish), tuple(path)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return (
            f"TaskGraph(nodes={len(self._nodes)}, edges={len(self._edges)}, "
            f"volume={self.volume}, critical_path_length={self.critical_path_length})"
        )

    @property
    def nodes(self) -> tuple[TaskNode, ...]:
        return self._nodes

    @property
    def edges(self) -> tuple[TaskEdge, ...]:
        return self._edges

    def node(self, index: int) -> TaskNode:
        return self._nodes[index]

    def predecessors(self, index: int) -> tuple[int, ...]:
        return self._preds[index]

    def successors(self, index: int) -> tuple[int, ...]:
        return self._succs[index]

    def edge_weight(self, source: int, target: int) -> int:
        return self._weights[(source, target)]

    @property
    def source_nodes(self) -> tuple[int, ...]:
        return tuple(i for i, preds in enumerate(self._preds) if not preds)

    @property
    def sink_nodes(self) -> tuple[int, ...]:
        return tuple(i for i, succs in enumerate(self._succs) if not succs)

    @property
    def topological_order(self) -> tuple[int, ...]:
        return self._topological_order

    @property
    def earliest_finish_times(self) -> tuple[int, ...]:
        """Finish time of every node with unlimited cores, edge latencies included."""

        return self._finish_times

    @property
    def volume(self) -> int:
        return self._volume

    @property
    def critical_path_length(self) -> int:
        return self._critical_path_length

    @property
    def critical_path(self) -> tuple[int, ...]:
        return self._critical_path

    @property
    def end_to_end_deadline(self) -> Optional[int]:
        return self._end_to_end_deadline

    @property
    def period(self) -> Optional[int]:
        return self._period

    @property
    def utilization(self) -> float:
        if self._end_to_end_deadline is None:
            logger.warning("end_to_end_deadline is not set; reporting utilization as 0.0")
            return 0.0
        return self.volume / self._end_to_end_deadline

    def with_priorities(self, priorities: Mapping[int, int]) -> TaskGraph:
        """Return a copy of the graph whose nodes carry the given priorities."""

        unknown = sorted(index for index in priorities if not 0 <= index < len(self._nodes))
        if unknown:
            msg = f"priorities given for unknown nodes {unknown}"
            raise GraphConstructionError(msg)
        nodes = [replace(node, priority=priorities.get(node.index, node.priority)) for node in self._nodes]
        return TaskGraph(
            nodes,
            self._edges,
            end_to_end_deadline=self._end_to_end_deadline,
            period=self._period,
        )
