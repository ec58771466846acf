from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from .graph import NodeRef


@dataclass(frozen=True, slots=True)
class ReadyNode:
    """View of a ready (or running) node handed to an ordering policy."""

    ref: NodeRef
    execution_time: int
    remaining_time: int
    absolute_deadline: Optional[int]
    priority: Optional[int]
    release_time: int
    ready_time: int

    @property
    def dag_id(self) -> int:
        return self.ref.dag_id

    @property
    def node_index(self) -> int:
        return self.ref.node_index


class OrderingPolicy(ABC):
    """Ready-queue ordering strategy: the single point where algorithms differ."""

    name: str = "policy"

    @abstractmethod
    def sort_key(self, node: ReadyNode, now: int) -> Any:
        """Return a comparable key; smaller keys are dispatched first."""

    def rank(self, node: ReadyNode, now: int) -> tuple[Any, int, int]:
        """Total rank of a node: policy key, then DAG id, then node index."""

        return (self.sort_key(node, now), node.dag_id, node.node_index)

    def reset(self) -> None:
        """Forget per-run state; called at the start of every schedule."""

    def order(self, ready: Iterable[ReadyNode], now: int) -> list[ReadyNode]:
        return sorted(ready, key=lambda node: self.rank(node, now))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class KeyPolicy(OrderingPolicy):
    """Policy built from an injected key function."""

    def __init__(self, name: str, key: Callable[[ReadyNode, int], Any]) -> None:
        self.name = name
        self._key = key

    def sort_key(self, node: ReadyNode, now: int) -> Any:
        return self._key(node, now)
