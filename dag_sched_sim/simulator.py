from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .dag_scheduler import DAGScheduler
from .dag_set_scheduler import DAGSetEntry, DAGSetScheduler
from .errors import ConfigurationError
from .graph import TaskGraph
from .policies import available_policies, create_policy, normalise_policy_name
from .policy import OrderingPolicy
from .processor import HomogeneousProcessor
from .scheduler import ScheduleResult


@dataclass(slots=True)
class SimulationConfig:
    number_of_cores: int = 1
    policy: str = "global_edf"
    preemptive: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.number_of_cores, int) or isinstance(self.number_of_cores, bool) or self.number_of_cores <= 0:
            msg = f"number_of_cores must be a positive integer, got {self.number_of_cores!r}"
            raise ConfigurationError(msg)
        if not isinstance(self.policy, str):
            msg = f"policy must be a policy name, got {self.policy!r}"
            raise ConfigurationError(msg)
        if normalise_policy_name(self.policy) not in available_policies():
            msg = f"unknown scheduling policy {self.policy!r}; expected one of {available_policies()}"
            raise ConfigurationError(msg)

    def build_processor(self) -> HomogeneousProcessor:
        return HomogeneousProcessor(self.number_of_cores)

    def build_policy(self) -> OrderingPolicy:
        return create_policy(self.policy)


def simulate(
    graph: TaskGraph,
    config: SimulationConfig | None = None,
    *,
    policy: OrderingPolicy | None = None,
) -> ScheduleResult:
    """Schedule one graph on a fresh processor. ``policy`` overrides the configured one."""

    config = config or SimulationConfig()
    scheduler = DAGScheduler(
        graph,
        config.build_processor(),
        policy if policy is not None else config.build_policy(),
        preemptive=config.preemptive,
    )
    return scheduler.schedule()


def simulate_set(
    entries: Sequence[DAGSetEntry],
    config: SimulationConfig | None = None,
    *,
    policy: OrderingPolicy | None = None,
) -> ScheduleResult:
    """Schedule a DAG set on a fresh processor. ``policy`` overrides the configured one."""

    config = config or SimulationConfig()
    scheduler = DAGSetScheduler(
        entries,
        config.build_processor(),
        policy if policy is not None else config.build_policy(),
        preemptive=config.preemptive,
    )
    return scheduler.schedule()
