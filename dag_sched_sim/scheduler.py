from __future__ import annotations

import bisect
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .core import ProcessStatus
from .errors import AllocationContractViolation, ConfigurationError, SchedulingError
from .graph import NodeRef, TaskGraph, TaskNode
from .metrics import DAGRecord, JobEvent, NodeRecord, ResponseTimeSummary, RunStatistics, ScheduleLog, summarise_responses
from .policies import GlobalEdfPolicy
from .policy import OrderingPolicy, ReadyNode
from .processor import Processor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduleResult:
    makespan: int
    finish_order: tuple[NodeRef, ...]
    nodes: tuple[NodeRecord, ...]
    dags: tuple[DAGRecord, ...]
    events: tuple[JobEvent, ...]
    statistics: RunStatistics

    def node_finish_order(self, dag_id: int = 0) -> list[int]:
        """Indices of the nodes of one DAG in the order they finished."""

        return [ref.node_index for ref in self.finish_order if ref.dag_id == dag_id]

    def node_record(self, node_index: int, dag_id: int = 0) -> NodeRecord:
        for record in self.nodes:
            if record.dag_id == dag_id and record.node_index == node_index:
                return record
        msg = f"no record for node {node_index} of DAG {dag_id}"
        raise KeyError(msg)

    @property
    def responses(self) -> ResponseTimeSummary:
        return summarise_responses(self.dags)

    @property
    def all_deadlines_met(self) -> bool:
        return all(dag.deadline_met is not False for dag in self.dags)


class _DAGRun:
    """Waiting/ready bookkeeping of one DAG during a run.

    Nodes whose predecessors have all finished sit in ``candidates`` until
    both the DAG release and every incoming edge latency have elapsed.
    """

    __slots__ = ("dag_id", "graph", "release_time", "_remaining_preds", "_ready_at", "_candidates", "_finished")

    def __init__(self, dag_id: int, graph: TaskGraph, release_time: int) -> None:
        self.dag_id = dag_id
        self.graph = graph
        self.release_time = release_time
        self._remaining_preds = [len(graph.predecessors(i)) for i in range(len(graph))]
        self._ready_at = [release_time] * len(graph)
        self._candidates: list[int] = list(graph.source_nodes)
        self._finished = 0

    @property
    def is_complete(self) -> bool:
        return self._finished == len(self.graph)

    def pop_eligible(self, now: int) -> list[int]:
        if now < self.release_time or not self._candidates:
            return []
        eligible = [i for i in self._candidates if self._ready_at[i] <= now]
        if eligible:
            self._candidates = [i for i in self._candidates if self._ready_at[i] > now]
        return eligible

    def next_eligible_time(self) -> Optional[int]:
        if not self._candidates:
            return None
        return min(self._ready_at[i] for i in self._candidates)

    def complete(self, index: int, now: int) -> None:
        self._finished += 1
        for succ in self.graph.successors(index):
            self._ready_at[succ] = max(self._ready_at[succ], now + self.graph.edge_weight(index, succ))
            self._remaining_preds[succ] -= 1
            if self._remaining_preds[succ] == 0:
                bisect.insort(self._candidates, succ)


class BaseDAGScheduler(ABC):
    """Discrete-time scheduling loop shared by the single-DAG and DAG-set schedulers.

    Every tick: move eligible nodes to the ready set, order it with the
    policy, fill idle cores lowest id first, advance all cores one tick and
    retire the nodes that completed. With ``preemptive`` set, a ready node
    that outranks the lowest-ranked running node evicts it when no core is
    idle; the evicted node keeps its remaining time and may resume on any
    core.
    """

    def __init__(
        self,
        processor: Processor,
        policy: OrderingPolicy | None = None,
        *,
        preemptive: bool = False,
    ) -> None:
        self.processor = processor
        self.policy = policy if policy is not None else GlobalEdfPolicy()
        self.preemptive = preemptive
        self._result: Optional[ScheduleResult] = None

    @abstractmethod
    def _build_runs(self) -> list[_DAGRun]:
        """Fresh per-DAG state for a run; list position is the DAG id."""

    @abstractmethod
    def _absolute_deadline(self, run: _DAGRun, node: TaskNode) -> Optional[int]:
        """Deadline handed to the policy for ``node``."""

    @property
    def result(self) -> Optional[ScheduleResult]:
        """Result of the last run that completed, if any."""

        return self._result

    def schedule(self) -> ScheduleResult:
        if not self.processor.is_idle():
            msg = "processor still has nodes allocated; each run needs an idle processor"
            raise ConfigurationError(msg)
        runs = self._build_runs()
        try:
            result = self._run(runs)
        except Exception:
            self._clear_processor()
            raise
        self._result = result
        return result

    def _run(self, runs: Sequence[_DAGRun]) -> ScheduleResult:
        self.policy.reset()
        log = ScheduleLog(
            self.processor.number_of_cores,
            [DAGRecord(run.dag_id, run.release_time, run.graph.end_to_end_deadline) for run in runs],
        )
        logger.debug(
            "%s: scheduling %d DAG(s), %d nodes on %d cores with %s",
            type(self).__name__,
            len(runs),
            sum(len(run.graph) for run in runs),
            self.processor.number_of_cores,
            self.policy.name,
        )

        ready: list[ReadyNode] = []
        running: dict[int, ReadyNode] = {}
        unfinished = len(runs)
        now = 0
        while unfinished:
            for run in runs:
                ready.extend(self._ready_node(run, index, now) for index in run.pop_eligible(now))

            if not ready and not running:
                now = self._next_event_time(runs, now)
                continue

            if ready:
                ready = self._dispatch(self.policy.order(ready, now), running, log, now)

            for core_id, outcome in enumerate(self.processor.process()):
                if outcome.status is ProcessStatus.IDLE:
                    continue
                log.record_busy(core_id)
                if outcome.status is ProcessStatus.CONTINUE:
                    entry = running[core_id]
                    running[core_id] = replace(entry, remaining_time=entry.remaining_time - 1)
                elif outcome.status is ProcessStatus.DONE:
                    del running[core_id]
                    finish = now + 1
                    ref = outcome.node
                    log.record_finish(ref, core_id, finish)
                    run = runs[ref.dag_id]
                    run.complete(ref.node_index, finish)
                    if run.is_complete:
                        log.record_dag_finish(run.dag_id, finish)
                        unfinished -= 1
                        logger.debug("DAG %d finished at t=%d", run.dag_id, finish)
            now += 1

        logger.debug("%s: makespan %d", type(self).__name__, now)
        return ScheduleResult(
            makespan=now,
            finish_order=log.finish_order,
            nodes=log.nodes,
            dags=log.dags,
            events=log.events,
            statistics=log.statistics(now),
        )

    def _ready_node(self, run: _DAGRun, index: int, now: int) -> ReadyNode:
        node = run.graph.node(index)
        return ReadyNode(
            ref=NodeRef(run.dag_id, index),
            execution_time=node.execution_time,
            remaining_time=node.execution_time,
            absolute_deadline=self._absolute_deadline(run, node),
            priority=node.priority,
            release_time=run.release_time,
            ready_time=now,
        )

    def _dispatch(
        self,
        ordered: list[ReadyNode],
        running: dict[int, ReadyNode],
        log: ScheduleLog,
        now: int,
    ) -> list[ReadyNode]:
        queue = deque(ordered)
        while queue:
            core_id = self.processor.get_idle_core_index()
            if core_id is None:
                if not self.preemptive:
                    break
                evicted = self._preempt(queue[0], running, log, now)
                if evicted is None:
                    break
                queue = deque(self.policy.order([*queue, evicted], now))
                continue
            head = queue.popleft()
            if not self.processor.allocate_specific_core(core_id, head.ref, head.remaining_time):
                msg = f"core {core_id} was reported idle but rejected node {head.ref} at t={now}"
                raise AllocationContractViolation(msg)
            running[core_id] = head
            log.record_start(head.ref, core_id, now)
        return list(queue)

    def _preempt(
        self,
        head: ReadyNode,
        running: dict[int, ReadyNode],
        log: ScheduleLog,
        now: int,
    ) -> Optional[ReadyNode]:
        if not running:
            return None
        core_id, victim = max(running.items(), key=lambda item: self.policy.rank(item[1], now))
        if self.policy.rank(head, now) >= self.policy.rank(victim, now):
            return None
        suspended = self.processor.suspend_core(core_id)
        if suspended is None or suspended.node != victim.ref:
            msg = f"core {core_id} was expected to run {victim.ref} at t={now}"
            raise AllocationContractViolation(msg)
        del running[core_id]
        log.record_preempt(victim.ref, core_id, now)
        return replace(victim, remaining_time=suspended.remaining_time)

    @staticmethod
    def _next_event_time(runs: Sequence[_DAGRun], now: int) -> int:
        upcoming = [t for t in (run.next_eligible_time() for run in runs if not run.is_complete) if t is not None]
        if not upcoming:
            msg = f"no node can become ready after t={now} but some DAGs are unfinished"
            raise SchedulingError(msg)
        return max(now + 1, min(upcoming))

    def _clear_processor(self) -> None:
        for core_id in range(self.processor.number_of_cores):
            self.processor.suspend_core(core_id)
