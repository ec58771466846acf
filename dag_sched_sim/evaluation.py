from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .dag_set_scheduler import DAGSetEntry
from .graph import TaskGraph
from .metrics import ResponseTimeSummary, RunStatistics
from .policies import PolicyFactory
from .scheduler import ScheduleResult
from .simulator import SimulationConfig, simulate, simulate_set


@dataclass(slots=True)
class EvaluationOutcome:
    name: str
    result: ScheduleResult
    statistics: RunStatistics
    responses: ResponseTimeSummary

    @property
    def makespan(self) -> int:
        return self.result.makespan

    @property
    def schedulable(self) -> bool:
        return self.result.all_deadlines_met


def evaluate_policy(
    name: str,
    factory: PolicyFactory,
    workload: TaskGraph | Sequence[DAGSetEntry],
    *,
    config: SimulationConfig | None = None,
) -> EvaluationOutcome:
    """Run one policy on a graph or DAG set, on a fresh processor from ``config``."""

    policy = factory()
    if isinstance(workload, TaskGraph):
        result = simulate(workload, config, policy=policy)
    else:
        result = simulate_set(workload, config, policy=policy)
    return EvaluationOutcome(name=name, result=result, statistics=result.statistics, responses=result.responses)


def evaluate_suite(
    factories: Sequence[tuple[str, PolicyFactory]],
    workload: TaskGraph | Sequence[DAGSetEntry],
    *,
    config: SimulationConfig | None = None,
) -> list[EvaluationOutcome]:
    return [evaluate_policy(name, factory, workload, config=config) for name, factory in factories]
