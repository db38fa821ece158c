"""Core simulation components."""

from .environment import Environment, FailureRecord, RunState
from .event_queue import EventQueue
from .events import (
    AllOf,
    AnyOf,
    CancellationNotice,
    Condition,
    ConditionValue,
    Event,
    EventKind,
    Timeout,
)
from .process import Process, ProcessState, Step, StepKind

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
]
