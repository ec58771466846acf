from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .graph import NodeRef


class ProcessStatus(Enum):
    IDLE = "idle"
    CONTINUE = "continue"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of one tick on one core. ``node`` is set for CONTINUE and DONE."""

    status: ProcessStatus
    node: Optional[NodeRef] = None

    @classmethod
    def idle(cls) -> ProcessResult:
        return cls(ProcessStatus.IDLE)

    @classmethod
    def cont(cls, node: NodeRef) -> ProcessResult:
        return cls(ProcessStatus.CONTINUE, node)

    @classmethod
    def done(cls, node: NodeRef) -> ProcessResult:
        return cls(ProcessStatus.DONE, node)


@dataclass(frozen=True, slots=True)
class Suspended:
    """A node evicted from a core, with the execution time it still needs."""

    node: NodeRef
    remaining_time: int


class Core:
    """Single execution slot: Idle, or Processing a node until its remaining time hits zero."""

    __slots__ = ("core_id", "_node", "_remaining")

    def __init__(self, core_id: int) -> None:
        self.core_id = core_id
        self._node: Optional[NodeRef] = None
        self._remaining = 0

    def __repr__(self) -> str:
        if self._node is None:
            return f"Core({self.core_id}, idle)"
        return f"Core({self.core_id}, {self._node}, remaining={self._remaining})"

    @property
    def is_idle(self) -> bool:
        return self._node is None

    @property
    def current_node(self) -> Optional[NodeRef]:
        return self._node

    @property
    def remaining_time(self) -> int:
        return self._remaining

    def allocate(self, node: NodeRef, execution_time: int) -> bool:
        if self._node is not None:
            return False
        if execution_time <= 0:
            msg = f"execution_time must be strictly positive, got {execution_time}"
            raise ValueError(msg)
        self._node = node
        self._remaining = execution_time
        return True

    def process_tick(self) -> ProcessResult:
        if self._node is None:
            return ProcessResult.idle()
        self._remaining -= 1
        if self._remaining > 0:
            return ProcessResult.cont(self._node)
        node = self._node
        self._node = None
        return ProcessResult.done(node)

    def suspend(self) -> Optional[Suspended]:
        """Return the core to Idle, handing back the evicted node and its remaining time."""

        if self._node is None:
            return None
        evicted = Suspended(self._node, self._remaining)
        self._node = None
        self._remaining = 0
        return evicted
