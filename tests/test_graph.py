from __future__ import annotations

import logging

import pytest

from dag_sched_sim import ConfigurationError, GraphConstructionError, TaskEdge, TaskGraph, TaskNode


def test_diamond_derived_metrics(diamond: TaskGraph) -> None:
    assert len(diamond) == 4
    assert diamond.volume == 10
    assert diamond.critical_path_length == 7
    assert diamond.critical_path == (0, 1, 3)
    assert diamond.source_nodes == (0,)
    assert diamond.sink_nodes == (3,)
    assert diamond.predecessors(3) == (1, 2)
    assert diamond.successors(0) == (1, 2)
    assert diamond.earliest_finish_times == (2, 5, 5, 7)


def test_volume_and_critical_path_length_are_cached(diamond: TaskGraph) -> None:
    assert diamond._volume == 10
    assert diamond._critical_path_length == 7


def test_edge_weights_count_towards_critical_path() -> None:
    graph = TaskGraph.from_execution_times([2, 3], [(0, 1, 1)])
    assert graph.edge_weight(0, 1) == 1
    assert graph.critical_path_length == 6
    assert graph.volume == 5


def test_topological_order_prefers_lowest_index() -> None:
    graph = TaskGraph.from_execution_times([1, 1, 1], [(2, 0)])
    assert graph.topological_order == (1, 2, 0)


def test_nodes_are_sorted_by_index() -> None:
    graph = TaskGraph([TaskNode(1, 4), TaskNode(0, 2)], [TaskEdge(0, 1)])
    assert [node.index for node in graph.nodes] == [0, 1]
    assert graph.node(1).execution_time == 4


@pytest.mark.parametrize(
    "edges",
    [
        [(0, 1), (1, 2), (2, 0)],
        [(1, 1)],
    ],
)
def test_cycles_are_rejected(edges: list[tuple[int, int]]) -> None:
    with pytest.raises(GraphConstructionError):
        TaskGraph.from_execution_times([1, 1, 1], edges)


def test_cycle_error_names_the_nodes() -> None:
    with pytest.raises(GraphConstructionError, match=r"\[1, 2\]"):
        TaskGraph.from_execution_times([1, 1, 1], [(0, 1), (1, 2), (2, 1)])


@pytest.mark.parametrize("execution_time", [0, -3, 1.5, True])
def test_non_positive_execution_time_is_rejected(execution_time: object) -> None:
    with pytest.raises(GraphConstructionError):
        TaskNode(index=0, execution_time=execution_time)  # type: ignore[arg-type]


def test_negative_edge_weight_is_rejected() -> None:
    with pytest.raises(GraphConstructionError):
        TaskEdge(0, 1, -1)


def test_structural_errors() -> None:
    with pytest.raises(GraphConstructionError):
        TaskGraph([])
    with pytest.raises(GraphConstructionError):
        TaskGraph([TaskNode(0, 1), TaskNode(2, 1)])
    with pytest.raises(GraphConstructionError):
        TaskGraph([TaskNode(0, 1), TaskNode(0, 1)])
    with pytest.raises(GraphConstructionError):
        TaskGraph.from_execution_times([1, 1], [(0, 5)])
    with pytest.raises(GraphConstructionError):
        TaskGraph.from_execution_times([1, 1], [(0, 1), (0, 1)])


def test_graph_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        TaskGraph.from_execution_times([1, 0])


@pytest.mark.parametrize("deadline", [0, -5])
def test_non_positive_end_to_end_deadline_is_a_configuration_error(deadline: int) -> None:
    with pytest.raises(ConfigurationError):
        TaskGraph.from_execution_times([1], end_to_end_deadline=deadline)


def test_non_positive_period_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        TaskGraph.from_execution_times([1], period=0)


def test_utilization(diamond: TaskGraph) -> None:
    graph = TaskGraph(diamond.nodes, diamond.edges, end_to_end_deadline=20)
    assert graph.utilization == pytest.approx(0.5)
    assert graph.end_to_end_deadline == 20


def test_utilization_without_deadline_warns(diamond: TaskGraph, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="dag_sched_sim.graph"):
        assert diamond.utilization == 0.0
    assert "end_to_end_deadline" in caplog.text


def test_with_priorities_leaves_original_untouched(diamond: TaskGraph) -> None:
    prioritised = diamond.with_priorities({0: 0, 3: 2})
    assert [node.priority for node in prioritised.nodes] == [0, None, None, 2]
    assert all(node.priority is None for node in diamond.nodes)
    assert prioritised.critical_path_length == diamond.critical_path_length


def test_with_priorities_rejects_unknown_nodes(diamond: TaskGraph) -> None:
    with pytest.raises(GraphConstructionError):
        diamond.with_priorities({9: 1})
