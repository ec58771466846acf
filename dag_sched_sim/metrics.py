from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from statistics import mean, pvariance
from typing import Iterable, Optional, Sequence

from .graph import NodeRef


class JobEventKind(Enum):
    START = "start"
    RESUME = "resume"
    PREEMPT = "preempt"
    FINISH = "finish"


@dataclass(frozen=True, slots=True)
class JobEvent:
    kind: JobEventKind
    time: int
    node: NodeRef
    core_id: int


@dataclass(slots=True)
class NodeRecord:
    """Allocation record of one node: the core it first ran on, start and finish ticks."""

    dag_id: int
    node_index: int
    core_id: int
    start_time: int
    finish_time: Optional[int] = None

    @property
    def ref(self) -> NodeRef:
        return NodeRef(self.dag_id, self.node_index)


@dataclass(slots=True)
class DAGRecord:
    dag_id: int
    release_time: int
    end_to_end_deadline: Optional[int] = None
    start_time: Optional[int] = None
    finish_time: Optional[int] = None

    @property
    def absolute_deadline(self) -> Optional[int]:
        if self.end_to_end_deadline is None:
            return None
        return self.release_time + self.end_to_end_deadline

    @property
    def response_time(self) -> Optional[int]:
        if self.finish_time is None:
            return None
        return self.finish_time - self.release_time

    @property
    def deadline_met(self) -> Optional[bool]:
        if self.finish_time is None or self.absolute_deadline is None:
            return None
        return self.finish_time <= self.absolute_deadline


@dataclass(frozen=True, slots=True)
class CoreStatistics:
    core_id: int
    busy_ticks: int
    utilization: float


@dataclass(frozen=True, slots=True)
class RunStatistics:
    makespan: int
    cores: tuple[CoreStatistics, ...]
    average_utilization: float
    variance_utilization: float

    @property
    def total_busy_ticks(self) -> int:
        return sum(core.busy_ticks for core in self.cores)


@dataclass(frozen=True, slots=True)
class ResponseTimeSummary:
    count: int
    average_response_time: float
    worst_response_time: int
    deadline_misses: int

    @property
    def deadline_miss_rate(self) -> float:
        if self.count == 0:
            return 0.0
        return self.deadline_misses / self.count


def build_run_statistics(busy_ticks: Sequence[int], makespan: int) -> RunStatistics:
    """Per-core utilization is busy ticks over makespan; the processor figures are their mean and population variance."""

    cores = tuple(
        CoreStatistics(core_id=core_id, busy_ticks=busy, utilization=busy / makespan if makespan else 0.0)
        for core_id, busy in enumerate(busy_ticks)
    )
    utilizations = [core.utilization for core in cores]
    if not utilizations:
        return RunStatistics(makespan=makespan, cores=cores, average_utilization=0.0, variance_utilization=0.0)
    return RunStatistics(
        makespan=makespan,
        cores=cores,
        average_utilization=mean(utilizations),
        variance_utilization=pvariance(utilizations),
    )


def summarise_responses(dags: Iterable[DAGRecord]) -> ResponseTimeSummary:
    finished = [dag for dag in dags if dag.response_time is not None]
    if not finished:
        return ResponseTimeSummary(count=0, average_response_time=0.0, worst_response_time=0, deadline_misses=0)
    responses = [dag.response_time for dag in finished]
    return ResponseTimeSummary(
        count=len(finished),
        average_response_time=mean(responses),
        worst_response_time=max(responses),
        deadline_misses=sum(1 for dag in finished if dag.deadline_met is False),
    )


class ScheduleLog:
    """Event buffer owned by one scheduling run."""

    def __init__(self, number_of_cores: int, dags: Sequence[DAGRecord]) -> None:
        self._busy = [0] * number_of_cores
        self._dags = list(dags)
        self._nodes: list[NodeRecord] = []
        self._by_ref: dict[NodeRef, NodeRecord] = {}
        self._events: list[JobEvent] = []
        self._finish_order: list[NodeRef] = []

    def record_start(self, node: NodeRef, core_id: int, now: int) -> None:
        record = self._by_ref.get(node)
        if record is not None:
            self._events.append(JobEvent(JobEventKind.RESUME, now, node, core_id))
            return
        record = NodeRecord(dag_id=node.dag_id, node_index=node.node_index, core_id=core_id, start_time=now)
        self._nodes.append(record)
        self._by_ref[node] = record
        self._events.append(JobEvent(JobEventKind.START, now, node, core_id))
        dag = self._dags[node.dag_id]
        if dag.start_time is None:
            dag.start_time = now

    def record_preempt(self, node: NodeRef, core_id: int, now: int) -> None:
        self._events.append(JobEvent(JobEventKind.PREEMPT, now, node, core_id))

    def record_finish(self, node: NodeRef, core_id: int, now: int) -> None:
        self._by_ref[node].finish_time = now
        self._finish_order.append(node)
        self._events.append(JobEvent(JobEventKind.FINISH, now, node, core_id))

    def record_dag_finish(self, dag_id: int, now: int) -> None:
        self._dags[dag_id].finish_time = now

    def record_busy(self, core_id: int) -> None:
        self._busy[core_id] += 1

    @property
    def nodes(self) -> tuple[NodeRecord, ...]:
        return tuple(self._nodes)

    @property
    def events(self) -> tuple[JobEvent, ...]:
        return tuple(self._events)

    @property
    def dags(self) -> tuple[DAGRecord, ...]:
        return tuple(self._dags)

    @property
    def finish_order(self) -> tuple[NodeRef, ...]:
        return tuple(self._finish_order)

    @property
    def busy_ticks(self) -> tuple[int, ...]:
        return tuple(self._busy)

    def statistics(self, makespan: int) -> RunStatistics:
        return build_run_statistics(self._busy, makespan)
