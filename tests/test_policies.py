from __future__ import annotations

import logging

import pytest

from dag_sched_sim import (
    ConfigurationError,
    DAGScheduler,
    FifoPolicy,
    FixedPriorityPolicy,
    GlobalEdfPolicy,
    HomogeneousProcessor,
    LeastLaxityPolicy,
    NodeRef,
    ReadyNode,
    TaskGraph,
    create_policy,
    critical_path_priorities,
)


def _ready(dag_id: int, index: int, *, deadline=None, priority=None, ready_time=0, remaining=1) -> ReadyNode:
    return ReadyNode(
        ref=NodeRef(dag_id, index),
        execution_time=remaining,
        remaining_time=remaining,
        absolute_deadline=deadline,
        priority=priority,
        release_time=0,
        ready_time=ready_time,
    )


@pytest.mark.parametrize(
    ("name", "policy_type"),
    [
        ("fifo", FifoPolicy),
        ("global_edf", GlobalEdfPolicy),
        ("Global-EDF", GlobalEdfPolicy),
        ("edf", GlobalEdfPolicy),
        ("fixed priority", FixedPriorityPolicy),
        ("least_laxity", LeastLaxityPolicy),
    ],
)
def test_create_policy(name: str, policy_type: type) -> None:
    assert isinstance(create_policy(name), policy_type)


def test_unknown_policy() -> None:
    with pytest.raises(ConfigurationError):
        create_policy("round_robin")


def test_ties_fall_to_dag_id_then_node_index() -> None:
    ready = [_ready(1, 0, deadline=5), _ready(0, 2, deadline=5), _ready(0, 1, deadline=5), _ready(0, 3, deadline=4)]
    ordered = GlobalEdfPolicy().order(ready, now=0)
    assert [node.ref for node in ordered] == [NodeRef(0, 3), NodeRef(0, 1), NodeRef(0, 2), NodeRef(1, 0)]


def test_edf_puts_nodes_without_deadline_last() -> None:
    ordered = GlobalEdfPolicy().order([_ready(0, 0), _ready(0, 1, deadline=100)], now=0)
    assert [node.node_index for node in ordered] == [1, 0]


def test_fifo_orders_by_ready_time() -> None:
    ordered = FifoPolicy().order([_ready(0, 0, ready_time=4), _ready(0, 1, ready_time=2)], now=5)
    assert [node.node_index for node in ordered] == [1, 0]


def test_least_laxity() -> None:
    # laxities: 10 - 0 - 8 = 2 and 6 - 0 - 1 = 5
    ready = [_ready(0, 0, deadline=6, remaining=1), _ready(0, 1, deadline=10, remaining=8)]
    ordered = LeastLaxityPolicy().order(ready, now=0)
    assert [node.node_index for node in ordered] == [1, 0]


def test_fixed_priority_order() -> None:
    ready = [_ready(0, 0, priority=3), _ready(0, 1, priority=1), _ready(0, 2, priority=2)]
    ordered = FixedPriorityPolicy().order(ready, now=0)
    assert [node.node_index for node in ordered] == [1, 2, 0]


def test_missing_priority_warns_once_per_run(diamond: TaskGraph, caplog: pytest.LogCaptureFixture) -> None:
    scheduler = DAGScheduler(diamond, HomogeneousProcessor(2), FixedPriorityPolicy())
    with caplog.at_level(logging.WARNING, logger="dag_sched_sim.policies"):
        scheduler.schedule()
        scheduler.schedule()
    warnings = [record for record in caplog.records if "has no priority" in record.getMessage()]
    assert len(warnings) == 2 * len(diamond)


def test_critical_path_priorities_on_diamond(diamond: TaskGraph) -> None:
    assert critical_path_priorities(diamond) == {0: 0, 1: 0, 3: 0, 2: 1}


def test_critical_path_priorities_rank_remaining_paths() -> None:
    graph = TaskGraph.from_execution_times(
        [10, 10, 10, 3, 2],
        [(0, 1), (1, 2), (0, 3), (3, 2), (0, 4)],
    )
    assert critical_path_priorities(graph) == {0: 0, 1: 0, 2: 0, 3: 1, 4: 2}


def test_critical_path_priorities_follow_provider_order() -> None:
    # critical chain 0..4; branches 5, 6 feed node 2, branches 7..9 feed node 3, 10..12 feed node 4
    graph = TaskGraph.from_execution_times(
        [4, 4, 4, 4, 4, 2, 1, 3, 2, 1, 3, 2, 2],
        [
            (0, 1), (1, 2), (2, 3), (3, 4),
            (0, 5), (5, 2), (0, 6), (6, 2),
            (0, 7), (7, 3), (7, 10), (10, 4),
            (1, 8), (8, 3), (8, 11), (11, 4),
            (1, 9), (9, 3), (9, 12), (12, 4),
        ],
    )
    priorities = critical_path_priorities(graph)
    assert [priorities[i] for i in range(len(graph))] == [0, 0, 0, 0, 0, 1, 2, 5, 3, 4, 8, 6, 7]


def test_critical_path_priorities_recurse_into_consumer_paths() -> None:
    # 5 -> 6 -> 8 is the longest consumer path; 4 and 7 feed it and outrank branch 3, which feeds node 2 directly
    graph = TaskGraph.from_execution_times(
        [10, 10, 10, 3, 2, 3, 1, 1, 3],
        [
            (0, 1), (1, 2), (0, 3), (3, 2),
            (0, 4), (4, 6), (0, 5), (5, 6), (5, 7),
            (6, 8), (7, 8), (8, 2),
        ],
    )
    priorities = critical_path_priorities(graph)
    assert [priorities[i] for i in range(len(graph))] == [0, 0, 0, 4, 2, 1, 1, 3, 1]


def test_model_based_schedule_prefers_critical_path() -> None:
    # the critical path 3 -> 4 comes last by index
    graph = TaskGraph.from_execution_times([1, 1, 1, 1, 5], [(3, 4)])
    plain = DAGScheduler(graph, HomogeneousProcessor(1), FifoPolicy()).schedule()
    prioritised = graph.with_priorities(critical_path_priorities(graph))
    model = DAGScheduler(prioritised, HomogeneousProcessor(1), FixedPriorityPolicy()).schedule()
    assert plain.node_finish_order()[0] == 0
    assert model.node_finish_order()[:2] == [3, 4]
    assert model.makespan == plain.makespan == graph.volume
