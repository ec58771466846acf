from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from random import Random

from .dag_set_scheduler import DAGSetEntry
from .errors import ConfigurationError
from .graph import TaskEdge, TaskGraph, TaskNode

Sampler = Sequence[int] | Callable[[Random], int] | Iterable[int]


def chain(
    execution_times: Sequence[int],
    *,
    weight: int = 0,
    end_to_end_deadline: int | None = None,
    period: int | None = None,
) -> TaskGraph:
    edges = [(i, i + 1, weight) for i in range(len(execution_times) - 1)]
    return TaskGraph.from_execution_times(
        execution_times,
        edges,
        end_to_end_deadline=end_to_end_deadline,
        period=period,
    )


def fork_join(
    head: int,
    branches: Sequence[int],
    tail: int,
    *,
    end_to_end_deadline: int | None = None,
    period: int | None = None,
) -> TaskGraph:
    """Head node, parallel branches, then a tail joining them. Node 0 is the head, the last index the tail."""

    times = [head, *branches, tail]
    tail_index = len(times) - 1
    edges: list[tuple[int, int]] = []
    for branch in range(1, tail_index):
        edges.append((0, branch))
        edges.append((branch, tail_index))
    if not branches:
        edges.append((0, tail_index))
    return TaskGraph.from_execution_times(
        times,
        edges,
        end_to_end_deadline=end_to_end_deadline,
        period=period,
    )


def layered_dag(
    layers: int,
    width: int,
    execution_times: Sampler,
    *,
    edge_probability: float = 0.5,
    seed: int | None = None,
    end_to_end_deadline: int | None = None,
    period: int | None = None,
) -> TaskGraph:
    """Random layered DAG: every node past the first layer depends on at least one node of the layer above."""

    if layers <= 0 or width <= 0:
        msg = "layers and width must be positive"
        raise ValueError(msg)
    if not 0.0 <= edge_probability <= 1.0:
        msg = "edge_probability must be within [0, 1]"
        raise ValueError(msg)
    if isinstance(execution_times, Iterable) and not isinstance(execution_times, Sequence):
        execution_times = tuple(execution_times)
    rng = Random(seed)
    nodes: list[TaskNode] = []
    edges: list[TaskEdge] = []
    previous: list[int] = []
    for _ in range(layers):
        current: list[int] = []
        for _ in range(rng.randint(1, width)):
            index = len(nodes)
            nodes.append(TaskNode(index=index, execution_time=_sample_positive(execution_times, rng)))
            current.append(index)
            if previous:
                parents = {rng.choice(previous)}
                parents.update(p for p in previous if rng.random() < edge_probability)
                edges.extend(TaskEdge(parent, index) for parent in sorted(parents))
        previous = current
    return TaskGraph(nodes, edges, end_to_end_deadline=end_to_end_deadline, period=period)


def hyper_period(graphs: Iterable[TaskGraph]) -> int:
    result = 1
    for graph in graphs:
        if graph.period is None:
            msg = "every graph needs a period to compute the hyper-period"
            raise ConfigurationError(msg)
        result = math.lcm(result, graph.period)
    return result


def periodic_entries(graphs: Sequence[TaskGraph], horizon: int | None = None) -> list[DAGSetEntry]:
    """Release every graph at each multiple of its period before ``horizon`` (default: the hyper-period).

    Entries are sorted by release time, then by position in ``graphs``.
    """

    limit = hyper_period(graphs) if horizon is None else horizon
    if limit <= 0:
        msg = "horizon must be positive"
        raise ConfigurationError(msg)
    releases: list[tuple[int, int]] = []
    for position, graph in enumerate(graphs):
        if graph.period is None:
            msg = f"graph {position} has no period"
            raise ConfigurationError(msg)
        releases.extend((release, position) for release in range(0, limit, graph.period))
    return [DAGSetEntry(graphs[position], release) for release, position in sorted(releases)]


def _sample_positive(source: Sampler, rng: Random) -> int:
    value = _sample_value(source, rng)
    if value <= 0:
        msg = "sampled execution time must be positive"
        raise ValueError(msg)
    return value


def _sample_value(source: Sampler, rng: Random) -> int:
    if isinstance(source, Iterable):
        if not isinstance(source, Sequence):
            source = tuple(source)
        if not source:
            msg = "sampler must not be empty"
            raise ValueError(msg)
        return rng.choice(source)
    return source(rng)
