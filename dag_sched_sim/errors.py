from __future__ import annotations


class SchedulingError(Exception):
    """Base class for every error raised by the simulator."""


class GraphConstructionError(SchedulingError, ValueError):
    """A task graph was built from invalid nodes or edges, or contains a cycle."""


class ConfigurationError(SchedulingError, ValueError):
    """A processor, deadline or policy setting is out of range."""


class AllocationContractViolation(SchedulingError, RuntimeError):
    """The scheduling loop tried to place a node on a core that was not idle."""
