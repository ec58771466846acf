from __future__ import annotations

from typing import Optional

from .graph import TaskGraph, TaskNode
from .policy import OrderingPolicy
from .processor import Processor
from .scheduler import BaseDAGScheduler, _DAGRun


class DAGScheduler(BaseDAGScheduler):
    """Drives one task graph to completion on a processor.

    The graph is released at tick 0. Deadlines handed to the policy are the
    node's own deadline when it has one, otherwise the graph's end-to-end
    deadline.
    """

    def __init__(
        self,
        graph: TaskGraph,
        processor: Processor,
        policy: OrderingPolicy | None = None,
        *,
        preemptive: bool = False,
    ) -> None:
        super().__init__(processor, policy, preemptive=preemptive)
        self.graph = graph

    def _build_runs(self) -> list[_DAGRun]:
        return [_DAGRun(0, self.graph, 0)]

    def _absolute_deadline(self, run: _DAGRun, node: TaskNode) -> Optional[int]:
        if node.deadline is not None:
            return run.release_time + node.deadline
        if run.graph.end_to_end_deadline is not None:
            return run.release_time + run.graph.end_to_end_deadline
        return None
