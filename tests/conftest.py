from __future__ import annotations

import pytest

from dag_sched_sim import TaskGraph


@pytest.fixture
def diamond() -> TaskGraph:
    """A -> {B, C} -> D with execution times 2, 3, 3, 2."""

    return TaskGraph.from_execution_times([2, 3, 3, 2], [(0, 1), (0, 2), (1, 3), (2, 3)])
