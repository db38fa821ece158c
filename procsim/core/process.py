"""Processes: generator-backed units of sequential simulated behavior."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generator, List, Optional

from .events import CancellationNotice, Event, EventKind
from .exceptions import Cancelled, KernelInvariantViolation, UsageError


class ProcessState(Enum):
    """States of a process."""
    CREATED = "created"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({
    ProcessState.SUCCEEDED,
    ProcessState.FAILED,
    ProcessState.CANCELLED,
})


class StepKind(Enum):
    """Outcome of a single resumption."""
    SUSPENDED = "suspended"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Step:
    """Result of ``Process.resume``.

    Attributes:
        kind: Whether the process suspended, returned or raised
        event: Event the process now waits on (SUSPENDED)
        value: Return value of the process (DONE)
        error: Exception that escaped the process (FAILED)
    """
    kind: StepKind
    event: Optional[Event] = None
    value: Any = None
    error: Optional[BaseException] = None


class Initialize(Event):
    """Starts a process on the next loop tick."""

    kind = EventKind.INITIALIZE

    def __init__(self, env, process: 'Process'):
        super().__init__(env)
        self.callbacks.append(process._on_event)
        self._trigger(True, None)


class Interruption(Event):
    """Delivers a cancellation signal to a waiting process."""

    kind = EventKind.INTERRUPT
    cancellable = False

    def __init__(self, process: 'Process', signal: Cancelled):
        super().__init__(process.env)
        self.callbacks.append(process._on_event)
        self.defused = True
        self._trigger(False, signal)


class ProcessCompletion(Event):
    """Triggered when its process terminates, whatever the outcome."""

    kind = EventKind.PROCESS_COMPLETION
    cancellable = False

    def __init__(self, process: 'Process'):
        super().__init__(process.env)
        self.process = process

    def __repr__(self) -> str:
        return f"ProcessCompletion(process={self.process.name}, time={self.scheduled_time})"


class Process:
    """A simulated entity driven by a generator.

    The generator yields events to wait on. Each time an awaited event
    fires, the environment resumes the process with the event's value
    (or raises the event's exception at the yield point). Yielding
    another process waits for that process to finish.

    Processes are created through ``Environment.create_process`` and
    start on the next loop tick, never synchronously.
    """

    def __init__(self, env, generator: Generator, name: Optional[str] = None):
        """Initialize process and schedule its start.

        Args:
            env: Owning environment
            generator: Generator object implementing the process body
            name: Optional human readable name
        """
        if not inspect.isgenerator(generator):
            raise UsageError(f"{generator!r} is not a generator")

        self.env = env
        self.pid = env._next_pid()
        self.name = name or f"{generator.__name__}-{self.pid}"
        self._generator = generator

        self.state = ProcessState.CREATED
        self.state_history: List[ProcessState] = [ProcessState.CREATED]
        self.target: Optional[Event] = None
        self.completion = ProcessCompletion(self)
        self._passivation: Optional[Event] = None
        self._started = False

        self.target = Initialize(env, self)
        self._set_state(ProcessState.SCHEDULED)

    def __repr__(self) -> str:
        return f"Process(pid={self.pid}, name={self.name}, state={self.state.value})"

    @property
    def is_alive(self) -> bool:
        return self.state not in TERMINAL_STATES

    @property
    def pending_event(self) -> Optional[Event]:
        """Event the process is waiting on, if any."""
        return self.target

    @property
    def is_passive(self) -> bool:
        return (
            self._passivation is not None
            and self.target is self._passivation
            and not self._passivation.triggered
        )

    @property
    def value(self) -> Any:
        """Return value (or exception) of a finished process."""
        return self.completion.value

    def resume(self, value: Any = None, error: Optional[BaseException] = None) -> Step:
        """Advance the process to its next suspension point.

        Args:
            value: Value sent in at the current yield point
            error: Exception raised at the current yield point instead

        Returns:
            Step describing where the process stopped
        """
        self._started = True
        while True:
            try:
                if error is not None:
                    yielded = self._generator.throw(error)
                else:
                    yielded = self._generator.send(value)
            except StopIteration as stop:
                return Step(StepKind.DONE, value=stop.value)
            except KernelInvariantViolation:
                raise
            except Exception as exc:
                return Step(StepKind.FAILED, error=exc)

            if isinstance(yielded, Process):
                yielded = yielded.completion

            if isinstance(yielded, Event):
                if yielded.env is self.env:
                    return Step(StepKind.SUSPENDED, event=yielded)
                error = UsageError(f"{self.name} yielded an event of another environment")
            else:
                error = UsageError(f"{self.name} yielded {yielded!r}, which is not an event")
            value = None

    def _set_state(self, state: ProcessState) -> None:
        self.state = state
        self.state_history.append(state)
        self.env.logger.debug(f"t={self.env.now}: {self.name} -> {state.value}")

    def _on_event(self, event: Event) -> None:
        """Callback run by the environment when the awaited event fires."""
        if isinstance(event, CancellationNotice) and event is not self.target:
            if event.origin is not self.target:
                # Detached by cancel() before the notice fired
                event.defused = True
                return
            self.target = event
        if event is not self.target:
            raise KernelInvariantViolation(
                f"{self.name} resumed by {event} while waiting on {self.target}"
            )
        if self.state not in (ProcessState.SCHEDULED, ProcessState.WAITING):
            raise KernelInvariantViolation(
                f"Cannot resume {self.name} in state {self.state.value}"
            )

        self.target = None
        if event is self._passivation or getattr(event, 'origin', None) is self._passivation:
            self._passivation = None
        self._set_state(ProcessState.RUNNING)

        self.env._active_process = self
        try:
            if event._ok:
                step = self.resume(value=event._value)
            else:
                event.defused = True
                step = self.resume(error=event._value)
        finally:
            self.env._active_process = None

        if step.kind is StepKind.SUSPENDED:
            self._wait_on(step.event)
        elif step.kind is StepKind.DONE:
            self._finish(ProcessState.SUCCEEDED, True, step.value)
        elif isinstance(step.error, Cancelled):
            self.completion.defused = True
            self._finish(ProcessState.CANCELLED, False, step.error)
        else:
            self._finish(ProcessState.FAILED, False, step.error)

    def _wait_on(self, event: Event) -> None:
        if event.cancelled:
            event = CancellationNotice(event)
        elif event.processed:
            # Already fired: replay its outcome at the current time.
            if not event._ok:
                event.defused = True
                self.env._forget_failure(event)
            proxy = Event(self.env, event.kind)
            proxy._trigger(event._ok, event._value)
            event = proxy

        self.target = event
        event.callbacks.append(self._on_event)
        self._set_state(ProcessState.WAITING)

    def _finish(self, state: ProcessState, ok: bool, value: Any) -> None:
        self.target = None
        self._passivation = None
        self._set_state(state)
        self.completion._trigger(ok, value)
        self.env._process_finished(self)

    def _cancel(self, cause: Any = None) -> None:
        """Detach from the pending event and deliver a Cancelled signal."""
        if not self.is_alive:
            raise UsageError(f"Cannot cancel {self.name}, it already finished")
        if self.state is ProcessState.RUNNING:
            raise UsageError(f"{self.name} cannot cancel itself")
        if isinstance(self.target, Interruption):
            return

        signal = Cancelled(cause)
        target = self.target

        if self._on_event in target.callbacks:
            target.callbacks.remove(self._on_event)

        if not self._started:
            target.cancel()
            self._generator.close()
            self.completion.defused = True
            self._finish(ProcessState.CANCELLED, False, signal)
            return

        if not target.callbacks and target.cancellable and not target.cancelled:
            target.cancel()
        self._passivation = None
        self.target = Interruption(self, signal)
