"""Discrete-time simulation of DAG task sets on multiprocessor platforms."""

from .errors import AllocationContractViolation, ConfigurationError, GraphConstructionError, SchedulingError
from .graph import NodeRef, TaskEdge, TaskGraph, TaskNode
from .core import Core, ProcessResult, ProcessStatus, Suspended
from .processor import HomogeneousProcessor, Processor
from .policy import KeyPolicy, OrderingPolicy, ReadyNode
from .policies import FifoPolicy, FixedPriorityPolicy, GlobalEdfPolicy, LeastLaxityPolicy, create_policy, critical_path_priorities
from .scheduler import ScheduleResult
from .dag_scheduler import DAGScheduler
from .dag_set_scheduler import DAGSetEntry, DAGSetScheduler
from .metrics import RunStatistics
from .simulator import SimulationConfig, simulate, simulate_set
from . import evaluation
from . import metrics
from . import workload

__all__ = [
	"AllocationContractViolation",
	"ConfigurationError",
	"GraphConstructionError",
	"SchedulingError",
	"NodeRef",
	"TaskEdge",
	"TaskGraph",
	"TaskNode",
	"Core",
	"ProcessResult",
	"ProcessStatus",
	"Suspended",
	"HomogeneousProcessor",
	"Processor",
	"KeyPolicy",
	"OrderingPolicy",
	"ReadyNode",
	"FifoPolicy",
	"FixedPriorityPolicy",
	"GlobalEdfPolicy",
	"LeastLaxityPolicy",
	"create_policy",
	"critical_path_priorities",
	"ScheduleResult",
	"DAGScheduler",
	"DAGSetEntry",
	"DAGSetScheduler",
	"RunStatistics",
	"SimulationConfig",
	"simulate",
	"simulate_set",
	"evaluation",
	"metrics",
	"workload",
]
