from __future__ import annotations

import pytest

from dag_sched_sim import (
    ConfigurationError,
    DAGSetEntry,
    FifoPolicy,
    GlobalEdfPolicy,
    KeyPolicy,
    SimulationConfig,
    TaskGraph,
    simulate,
    simulate_set,
    workload,
)
from dag_sched_sim.evaluation import evaluate_policy, evaluate_suite


@pytest.mark.parametrize("cores", [0, -2])
def test_config_rejects_bad_core_count(cores: int) -> None:
    with pytest.raises(ConfigurationError):
        SimulationConfig(number_of_cores=cores)


def test_config_rejects_unknown_policy() -> None:
    with pytest.raises(ConfigurationError):
        SimulationConfig(policy="lottery")


def test_config_builds_processor_and_policy() -> None:
    config = SimulationConfig(number_of_cores=3, policy="fifo")
    assert config.build_processor().number_of_cores == 3
    assert isinstance(config.build_policy(), FifoPolicy)


def test_simulate_diamond(diamond: TaskGraph) -> None:
    result = simulate(diamond, SimulationConfig(number_of_cores=2))
    assert result.makespan == 7
    assert result.statistics.average_utilization == pytest.approx((7 / 7 + 3 / 7) / 2)


def test_simulate_with_injected_policy(diamond: TaskGraph) -> None:
    policy = KeyPolicy("c_before_b", lambda node, now: -node.node_index)
    result = simulate(diamond, SimulationConfig(number_of_cores=1), policy=policy)
    assert result.node_finish_order() == [0, 2, 1, 3]


def test_simulate_set_defaults_to_one_core() -> None:
    entries = [DAGSetEntry(workload.chain([2, 2])), DAGSetEntry(workload.chain([1, 1]), 2)]
    result = simulate_set(entries)
    assert result.makespan == 6


def test_evaluate_suite_compares_policies() -> None:
    graphs = [
        TaskGraph.from_execution_times([4], end_to_end_deadline=20),
        TaskGraph.from_execution_times([1], end_to_end_deadline=2),
    ]
    entries = [DAGSetEntry(graphs[0], 0), DAGSetEntry(graphs[1], 1)]
    config = SimulationConfig(number_of_cores=1, preemptive=True)
    outcomes = evaluate_suite([("FIFO", FifoPolicy), ("EDF", GlobalEdfPolicy)], entries, config=config)

    assert [outcome.name for outcome in outcomes] == ["FIFO", "EDF"]
    fifo, edf = outcomes
    assert not fifo.schedulable
    assert edf.schedulable
    assert fifo.makespan == edf.makespan == 5
    assert edf.responses.worst_response_time == 5
    assert edf.statistics.cores[0].utilization == pytest.approx(1.0)


def test_evaluate_policy_on_single_graph(diamond: TaskGraph) -> None:
    outcome = evaluate_policy("EDF", GlobalEdfPolicy, diamond, config=SimulationConfig(number_of_cores=2))
    assert outcome.makespan == 7
    assert outcome.schedulable


@pytest.mark.parametrize("policy", [3, None, FifoPolicy()])
def test_config_rejects_non_string_policy(policy: object) -> None:
    with pytest.raises(ConfigurationError, match="policy name"):
        SimulationConfig(policy=policy)  # type: ignore[arg-type]
