from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import ConfigurationError
from .graph import TaskGraph, TaskNode
from .policy import OrderingPolicy
from .processor import Processor
from .scheduler import BaseDAGScheduler, _DAGRun


@dataclass(frozen=True, slots=True)
class DAGSetEntry:
    """A task graph together with the tick at which it is released."""

    graph: TaskGraph
    release_time: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.release_time, int) or isinstance(self.release_time, bool) or self.release_time < 0:
            msg = f"release_time must be a non-negative integer, got {self.release_time!r}"
            raise ConfigurationError(msg)


class DAGSetScheduler(BaseDAGScheduler):
    """Schedules several task graphs with independent releases on one shared processor.

    The DAG id of an entry is its position in ``entries``. Ready nodes of all
    released DAGs are ordered together; the deadline of every node is its
    DAG's absolute deadline, ``release_time + end_to_end_deadline``.
    """

    def __init__(
        self,
        entries: Sequence[DAGSetEntry],
        processor: Processor,
        policy: OrderingPolicy | None = None,
        *,
        preemptive: bool = False,
    ) -> None:
        if not entries:
            msg = "a DAG set needs at least one entry"
            raise ConfigurationError(msg)
        super().__init__(processor, policy, preemptive=preemptive)
        self.entries: tuple[DAGSetEntry, ...] = tuple(entries)

    def _build_runs(self) -> list[_DAGRun]:
        return [_DAGRun(dag_id, entry.graph, entry.release_time) for dag_id, entry in enumerate(self.entries)]

    def _absolute_deadline(self, run: _DAGRun, node: TaskNode) -> Optional[int]:
        if run.graph.end_to_end_deadline is None:
            return None
        return run.release_time + run.graph.end_to_end_deadline
