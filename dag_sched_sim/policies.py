from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence

from .errors import ConfigurationError
from .graph import NodeRef, TaskGraph
from .policy import OrderingPolicy, ReadyNode

logger = logging.getLogger(__name__)


class FifoPolicy(OrderingPolicy):
    """Dispatch in the order nodes became ready."""

    name = "fifo"

    def sort_key(self, node: ReadyNode, now: int) -> int:
        return node.ready_time


class GlobalEdfPolicy(OrderingPolicy):
    """Global Earliest Deadline First over absolute deadlines; nodes without one go last."""

    name = "global_edf"

    def sort_key(self, node: ReadyNode, now: int) -> float:
        if node.absolute_deadline is None:
            return math.inf
        return node.absolute_deadline


class FixedPriorityPolicy(OrderingPolicy):
    """Dispatch by the node's precomputed priority, lower value first."""

    name = "fixed_priority"

    def __init__(self) -> None:
        self._warned: set[NodeRef] = set()

    def reset(self) -> None:
        self._warned.clear()

    def sort_key(self, node: ReadyNode, now: int) -> float:
        if node.priority is None:
            if node.ref not in self._warned:
                self._warned.add(node.ref)
                logger.warning("node %s has no priority; it is ordered after every prioritised node", node.ref)
            return math.inf
        return node.priority


class LeastLaxityPolicy(OrderingPolicy):
    """Dispatch the node with the least laxity (deadline - now - remaining time)."""

    name = "least_laxity"

    def __init__(self, clamp_fn: Callable[[float], float] | None = None) -> None:
        self._clamp_fn = clamp_fn if clamp_fn is not None else lambda laxity: laxity

    def sort_key(self, node: ReadyNode, now: int) -> float:
        if node.absolute_deadline is None:
            return math.inf
        return self._clamp_fn(node.absolute_deadline - now - node.remaining_time)


PolicyFactory = Callable[[], OrderingPolicy]

_REGISTRY: dict[str, PolicyFactory] = {
    "fifo": FifoPolicy,
    "global_edf": GlobalEdfPolicy,
    "edf": GlobalEdfPolicy,
    "fixed_priority": FixedPriorityPolicy,
    "least_laxity": LeastLaxityPolicy,
}


def available_policies() -> list[str]:
    return sorted(_REGISTRY)


def normalise_policy_name(name: str) -> str:
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def create_policy(name: str) -> OrderingPolicy:
    """Instantiate a policy from its identifier, e.g. ``"global_edf"``."""

    key = normalise_policy_name(name)
    try:
        factory = _REGISTRY[key]
    except KeyError:
        msg = f"unknown scheduling policy {name!r}; expected one of {available_policies()}"
        raise ConfigurationError(msg) from None
    return factory()


def critical_path_priorities(graph: TaskGraph) -> dict[int, int]:
    """Model-based (concurrent provider and consumer) priority assignment for a single DAG.

    The critical path gets priority 0 and is cut into providers: a new
    provider starts at every critical node with a non-critical predecessor.
    The f-consumers of a provider are the non-critical ancestors of the next
    provider that no earlier provider claimed. Providers are handled in
    critical-path order; inside a consumer group the longest path (by
    earliest finish time, walking back through the longest predecessor in the
    group) takes the next priority and is then treated as the critical path
    of what is left of the group. Non-critical nodes that feed no critical
    node are ranked the same way after every provider. Lower value means
    higher priority; use the result with ``graph.with_priorities`` and
    ``FixedPriorityPolicy``.
    """

    assigner = _ProviderConsumerAssigner(graph)
    critical = graph.critical_path
    assigner.assign(critical, set(range(len(graph))) - set(critical))
    return assigner.priorities


class _ProviderConsumerAssigner:
    def __init__(self, graph: TaskGraph) -> None:
        self.graph = graph
        self.priorities: dict[int, int] = {}
        self._finish = graph.earliest_finish_times
        self._priority = 0

    def assign(self, critical: Sequence[int], others: set[int]) -> None:
        for index in critical:
            self.priorities[index] = self._priority
        self._assign_consumers(critical, others)
        self._assign_group(others)

    def _provider_heads(self, path: Sequence[int], scope: set[int]) -> list[int]:
        # path[0] always opens the first provider
        return [index for index in path[1:] if any(pred in scope for pred in self.graph.predecessors(index))]

    def _ancestors(self, index: int) -> set[int]:
        seen: set[int] = set()
        stack = list(self.graph.predecessors(index))
        while stack:
            pred = stack.pop()
            if pred not in seen:
                seen.add(pred)
                stack.extend(self.graph.predecessors(pred))
        return seen

    def _assign_group(self, group: set[int]) -> None:
        remaining = {index for index in group if index not in self.priorities}
        while remaining:
            path = self._longest_path(remaining)
            self._priority += 1
            for index in path:
                self.priorities[index] = self._priority
            remaining.difference_update(path)
            self._assign_consumers(path, remaining)
            remaining = {index for index in remaining if index not in self.priorities}

    def _assign_consumers(self, path: Sequence[int], scope: set[int]) -> None:
        for head in self._provider_heads(path, scope):
            self._assign_group(self._ancestors(head) & scope)

    def _longest_path(self, group: set[int]) -> list[int]:
        finish = self._finish
        path = [max(group, key=lambda i: (finish[i], -i))]
        while True:
            preds = [pred for pred in self.graph.predecessors(path[-1]) if pred in group]
            if not preds:
                break
            path.append(max(preds, key=lambda i: (finish[i], -i)))
        path.reverse()
        return path
