"""procsim: process-oriented discrete event simulation."""

from .core.environment import Environment, FailureRecord, RunState
from .core.event_queue import EventQueue
from .core.events import (
    AllOf,
    AnyOf,
    CancellationNotice,
    Condition,
    ConditionValue,
    Event,
    EventKind,
    Timeout,
)
from .core.exceptions import (
    Cancelled,
    CapacityExceeded,
    EmptySchedule,
    KernelInvariantViolation,
    OverRelease,
    ProcessFailure,
    SimulationError,
    UnobservedFailures,
    UsageError,
)
from .core.process import Process, ProcessState, Step, StepKind
from .resources import Container, Request, Resource, Store
from .monitoring import EventTrace, TraceRecord
from .configs import load_config, merge_configs
from .utils.logger import setup_logger

__version__ = "0.1.0"
__all__ = [
    "Environment",
    "FailureRecord",
    "RunState",
    "EventQueue",
    "Event",
    "EventKind",
    "Timeout",
    "Condition",
    "CancellationNotice",
    "ConditionValue",
    "AnyOf",
    "AllOf",
    "Process",
    "ProcessState",
    "Step",
    "StepKind",
    "Resource",
    "Request",
    "Container",
    "Store",
    "EventTrace",
    "TraceRecord",
    "SimulationError",
    "UsageError",
    "CapacityExceeded",
    "OverRelease",
    "EmptySchedule",
    "KernelInvariantViolation",
    "ProcessFailure",
    "UnobservedFailures",
    "Cancelled",
    "load_config",
    "merge_configs",
    "setup_logger",
]
