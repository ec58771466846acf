from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .core import Core, ProcessResult, Suspended
from .errors import ConfigurationError
from .graph import NodeRef


class Processor(ABC):
    """Capability set every processor model offers to the scheduling loop."""

    @property
    @abstractmethod
    def number_of_cores(self) -> int:
        """Number of cores, fixed for the processor's lifetime."""

    @abstractmethod
    def allocate_specific_core(self, core_id: int, node: NodeRef, execution_time: int) -> bool:
        """Start ``node`` on ``core_id``; False when that core is busy."""

    @abstractmethod
    def process(self) -> list[ProcessResult]:
        """Advance every core by one tick, in ascending core id."""

    @abstractmethod
    def get_idle_core_index(self) -> Optional[int]:
        """Lowest idle core id, or None when every core is busy."""

    @abstractmethod
    def suspend_core(self, core_id: int) -> Optional[Suspended]:
        """Evict whatever runs on ``core_id``."""

    @abstractmethod
    def is_core_idle(self, core_id: int) -> bool:
        """Whether ``core_id`` has nothing to process."""

    def allocate_any_idle_core(self, node: NodeRef, execution_time: int) -> Optional[int]:
        core_id = self.get_idle_core_index()
        if core_id is None:
            return None
        if not self.allocate_specific_core(core_id, node, execution_time):
            return None
        return core_id

    def idle_core_indices(self) -> list[int]:
        return [core_id for core_id in range(self.number_of_cores) if self.is_core_idle(core_id)]

    def is_idle(self) -> bool:
        return len(self.idle_core_indices()) == self.number_of_cores


class HomogeneousProcessor(Processor):
    """Processor made of identical, interchangeable cores."""

    def __init__(self, number_of_cores: int) -> None:
        if not isinstance(number_of_cores, int) or isinstance(number_of_cores, bool) or number_of_cores <= 0:
            msg = f"number_of_cores must be a positive integer, got {number_of_cores!r}"
            raise ConfigurationError(msg)
        self._cores: tuple[Core, ...] = tuple(Core(core_id) for core_id in range(number_of_cores))

    def __repr__(self) -> str:
        return f"HomogeneousProcessor(number_of_cores={len(self._cores)})"

    @property
    def number_of_cores(self) -> int:
        return len(self._cores)

    @property
    def cores(self) -> Sequence[Core]:
        return self._cores

    def allocate_specific_core(self, core_id: int, node: NodeRef, execution_time: int) -> bool:
        return self._cores[core_id].allocate(node, execution_time)

    def process(self) -> list[ProcessResult]:
        return [core.process_tick() for core in self._cores]

    def get_idle_core_index(self) -> Optional[int]:
        for core in self._cores:
            if core.is_idle:
                return core.core_id
        return None

    def is_core_idle(self, core_id: int) -> bool:
        return self._cores[core_id].is_idle

    def suspend_core(self, core_id: int) -> Optional[Suspended]:
        return self._cores[core_id].suspend()
