"""Simulation environment: the clock, the event loop and the process table."""

import itertools
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional, Union

import numpy as np
from tqdm import tqdm

from .event_queue import EventQueue
from .events import AllOf, AnyOf, Event, EventKind, Timeout
from .exceptions import (
    KernelInvariantViolation,
    ProcessFailure,
    UnobservedFailures,
    UsageError,
)
from .process import Process, ProcessState
from ..configs import resolve_config
from ..utils.logger import setup_logger

Observer = Callable[['Environment', Event], None]


class RunState(Enum):
    """States of a run of the event loop."""
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    STOPPED_BY_HORIZON = "stopped_by_horizon"
    STOPPED = "stopped"
    FAILED = "failed"


@dataclass
class FailureRecord:
    """A failed event that nobody waited on."""
    event: Event
    exception: BaseException
    time: float
    process: Optional[Process] = None


class Environment:
    """Discrete event simulation environment.

    Owns the virtual clock, the event queue and the table of live
    processes, and runs the loop that pops the next event, advances the
    clock to it and resumes whoever waits on it. Every simulation builds
    its own environment; there is no global state.
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize environment.

        Args:
            config: Partial configuration dictionary merged onto the
                bundled defaults (see ``procsim/configs/default.yaml``)
        """
        self.config = resolve_config(config)
        sim_config = self.config['simulation']
        self.logger = setup_logger(
            self.__class__.__name__, level=self.config['logging']['level']
        )

        # Simulation state
        self._now = float(sim_config['initial_time'])
        self.event_queue = EventQueue()
        self.run_state = RunState.IDLE
        self._stop_requested = False
        self._until_event: Optional[Event] = None
        self._active_process: Optional[Process] = None

        # Failure handling
        self.abort_on_failure = sim_config['abort_on_failure']
        self.failure_report = sim_config['failure_report']
        self._unobserved: Dict[Event, FailureRecord] = {}
        self._reported: List[FailureRecord] = []

        self.show_progress = sim_config['show_progress']
        self.default_discipline = self.config['resources']['discipline']

        # Per-environment random generator for stochastic models
        self.rng = np.random.default_rng(sim_config.get('random_seed'))

        self._processes: Dict[int, Process] = {}
        self._pid_counter = itertools.count()
        self._observers: List[Observer] = []

        # Statistics
        self.stats = {
            'events_fired': 0,
            'events_cancelled': 0,
            'processes_created': 0,
            'processes_succeeded': 0,
            'processes_failed': 0,
            'processes_cancelled': 0,
        }

    def __repr__(self) -> str:
        return (
            f"Environment(now={self._now}, state={self.run_state.value}, "
            f"pending={len(self.event_queue)})"
        )

    @property
    def now(self) -> float:
        """Current virtual time."""
        return self._now

    def current_time(self) -> float:
        return self._now

    @property
    def active_process(self) -> Optional[Process]:
        """Process whose body is executing right now, if any."""
        return self._active_process

    @property
    def failures(self) -> List[FailureRecord]:
        """Failed events nobody waited on, reported or not."""
        return self._reported + list(self._unobserved.values())

    # Process management

    def create_process(self, generator: Generator, name: Optional[str] = None) -> Process:
        """Register a process; it starts on the next loop tick.

        Args:
            generator: Generator object implementing the process body
            name: Optional process name

        Returns:
            The new process, usable as a handle for waiting and cancelling
        """
        process = Process(self, generator, name=name)
        self._processes[process.pid] = process
        self.stats['processes_created'] += 1
        return process

    process = create_process

    def get_process(self, pid: int) -> Optional[Process]:
        """Look up a live process by id."""
        return self._processes.get(pid)

    @property
    def active_processes(self) -> List[Process]:
        return list(self._processes.values())

    def cancel(self, process: Process, cause: Any = None) -> None:
        """Cancel a process.

        Its pending event is detached (and cancelled when nothing else
        waits on it) and the process is resumed at the current time with
        a ``Cancelled`` signal.

        Raises:
            UsageError: If the process already finished or is the caller
        """
        self.logger.debug(f"t={self._now}: cancelling {process.name} (cause={cause!r})")
        process._cancel(cause)

    def passivate(self) -> Event:
        """Event the calling process yields to sleep until activated."""
        process = self._active_process
        if process is None:
            raise UsageError("passivate() must be called from inside a process")
        if process._passivation is not None and not process._passivation.triggered:
            raise UsageError(f"{process.name} is already passivating")
        process._passivation = Event(self, EventKind.USER_SIGNAL)
        return process._passivation

    def activate(self, process: Process, value: Any = None) -> None:
        """Wake a passive process at the current time.

        Raises:
            UsageError: If the process is not passive, or was already
                activated at this time
        """
        if not process.is_passive:
            raise UsageError(f"{process.name} is not passive")
        process._passivation.succeed(value)

    def activate_many(self, processes: Iterable[Process], value: Any = None) -> None:
        """Wake several passive processes; they resume in the given order.

        Nothing is activated unless every process is passive.
        """
        processes = list(processes)
        for process in processes:
            if not process.is_passive:
                raise UsageError(f"{process.name} is not passive")
        if len({process.pid for process in processes}) != len(processes):
            raise UsageError("Cannot activate the same process twice")
        for process in processes:
            process._passivation.succeed(value)

    def _next_pid(self) -> int:
        return next(self._pid_counter)

    def _process_finished(self, process: Process) -> None:
        self._processes.pop(process.pid, None)

        if process.state is ProcessState.SUCCEEDED:
            self.stats['processes_succeeded'] += 1
        elif process.state is ProcessState.CANCELLED:
            self.stats['processes_cancelled'] += 1
            self.logger.debug(f"t={self._now}: {process.name} cancelled")
        else:
            self.stats['processes_failed'] += 1
            error = process.completion.value
            self.logger.warning(f"t={self._now}: {process.name} failed: {error!r}")
            if self.abort_on_failure:
                raise ProcessFailure(process, error) from error

    # Event creation

    def event(self) -> Event:
        """Bare event triggered manually with ``succeed`` or ``fail``."""
        return Event(self, EventKind.USER_SIGNAL)

    def timeout(self, delay: float, value: Any = None) -> Timeout:
        """Event firing ``delay`` time units from now."""
        return Timeout(self, delay, value)

    def schedule_timeout(self, duration: float) -> Timeout:
        return self.timeout(duration)

    def any_of(self, events: Iterable[Event]) -> AnyOf:
        """Event firing when the first of ``events`` fires."""
        return AnyOf(self, events)

    def all_of(self, events: Iterable[Event]) -> AllOf:
        """Event firing once all of ``events`` have fired."""
        return AllOf(self, events)

    def schedule(self, event: Event, delay: float = 0.0) -> None:
        """Put a triggered event on the queue ``delay`` units from now."""
        self.event_queue.schedule(event, self._now + delay)

    # Observation

    def add_observer(self, observer: Observer) -> None:
        """Call ``observer(env, event)`` after every fired event."""
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        self._observers.remove(observer)

    def pending_events(self) -> List[Event]:
        """Events still on the queue, in firing order."""
        return self.event_queue.pending()

    # Event loop

    def peek(self) -> float:
        """Time of the next event that will actually fire, or inf."""
        return self.event_queue.next_live_time()

    def step(self) -> None:
        """Pop and fire exactly one event.

        Raises:
            EmptySchedule: If no events are left
        """
        event = self.event_queue.pop_next()

        if event.processed:
            raise KernelInvariantViolation(f"{event} fired twice")
        if event.scheduled_time < self._now:
            raise KernelInvariantViolation(
                f"Clock would move backwards from {self._now} to {event.scheduled_time}"
            )

        if event.cancelled:
            event.callbacks = None
            self.stats['events_cancelled'] += 1
            self.logger.debug(f"t={self._now}: skipping cancelled {event}")
            return

        self._now = event.scheduled_time
        callbacks, event.callbacks = event.callbacks, None
        for callback in callbacks:
            callback(event)
        self.stats['events_fired'] += 1

        if not event._ok and not event.defused:
            self._unobserved[event] = FailureRecord(
                event=event,
                exception=event._value,
                time=self._now,
                process=getattr(event, 'process', None),
            )

        for observer in self._observers:
            observer(self, event)

    def stop(self) -> None:
        """End the current run once the event being fired is done.

        Queued events are kept and can be resumed with another ``run``.
        """
        self._stop_requested = True
        self.logger.info(f"Stop requested at t={self._now}")

    def run(self, until: Union[None, float, Event, Process] = None) -> Any:
        """Run the simulation.

        Args:
            until: None to run until no events are left, a time to process
                every event up to and including it, or an event (or
                process) to run until it has fired (finished)

        Returns:
            Value of the ``until`` event if one was given, else None

        Raises:
            UsageError: If ``until`` lies in the past, or the ``until``
                event can no longer fire
            ProcessFailure: If a process fails and ``abort_on_failure`` is set
            UnobservedFailures: If ``failure_report`` is ``raise`` and some
                failure was never waited on
            KernelInvariantViolation: On internal inconsistencies
        """
        if self.run_state is RunState.RUNNING:
            raise UsageError("Environment is already running")

        stop_at = None
        until_event = None
        if isinstance(until, Process):
            until = until.completion
        if isinstance(until, Event):
            until_event = until
            if until_event.processed or until_event.cancelled:
                return self._until_result(until_event)
            until_event.callbacks.append(self._stop_on_event)
            self._until_event = until_event
        elif until is not None:
            stop_at = float(until)
            if stop_at < self._now:
                raise UsageError(
                    f"until ({stop_at}) must not be earlier than the current time ({self._now})"
                )

        self.run_state = RunState.RUNNING
        self._stop_requested = False
        start_time = time.time()
        start_now = self._now
        self.logger.info(f"Starting run at t={self._now} (until={until})")

        progress = None
        if self.show_progress and stop_at is not None:
            progress = tqdm(total=stop_at - self._now, desc="virtual time", unit="t")

        try:
            while not self.event_queue.is_empty():
                if stop_at is not None and self.event_queue.peek().scheduled_time > stop_at:
                    break
                self.step()
                if progress is not None:
                    progress.update(self._now - start_now - progress.n)
                if self._stop_requested:
                    break
        except BaseException:
            self.run_state = RunState.FAILED
            raise
        finally:
            if progress is not None:
                progress.close()
            if until_event is not None and self._stop_on_event in (until_event.callbacks or ()):
                until_event.callbacks.remove(self._stop_on_event)
            self._until_event = None

        if until_event is not None and until_event.processed:
            self.run_state = RunState.FINISHED
        elif self._stop_requested:
            self.run_state = RunState.STOPPED
        elif stop_at is not None:
            self.run_state = (
                RunState.FINISHED if self.event_queue.is_empty()
                else RunState.STOPPED_BY_HORIZON
            )
            self._now = stop_at
        else:
            self.run_state = RunState.FINISHED

        elapsed_time = time.time() - start_time
        self.logger.info(
            f"Run {self.run_state.value} at t={self._now} "
            f"({self.stats['events_fired']} events fired, {elapsed_time:.2f}s)"
        )

        self._report_failures()

        if until_event is not None:
            if until_event.processed or until_event.cancelled:
                return self._until_result(until_event)
            if self.run_state is RunState.FINISHED:
                raise UsageError(f"No events left but {until_event} has not fired")
        return None

    def _stop_on_event(self, event: Event) -> None:
        # run() hands the outcome to its caller, which counts as observing it
        event.defused = True
        target = getattr(event, 'origin', event)
        if target is self._until_event:
            self._stop_requested = True

    @staticmethod
    def _until_result(event: Event) -> Any:
        if event.cancelled:
            raise UsageError(f"{event} was cancelled")
        if not event._ok:
            event.defused = True
            raise event._value
        return event._value

    # Failure report

    def _forget_failure(self, event: Event) -> None:
        """A late waiter observed a failed event."""
        self._unobserved.pop(event, None)

    def _report_failures(self) -> None:
        if not self._unobserved:
            return

        records = list(self._unobserved.values())
        self._unobserved.clear()
        self._reported.extend(records)

        if self.failure_report == 'raise':
            raise UnobservedFailures(records)
        if self.failure_report == 'log':
            for record in records:
                source = record.process.name if record.process else repr(record.event)
                self.logger.error(
                    f"Unobserved failure of {source} at t={record.time}: {record.exception!r}"
                )
