"""Events: the things processes wait on.

An event is pending until it is *triggered* (its outcome fixed and an entry
placed on the event queue), then *processed* exactly once when the
environment pops it and runs its callbacks. A cancelled event is still popped
in its turn but runs no callbacks.
"""

from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from .exceptions import UsageError


class EventKind(Enum):
    """Closed set of event kinds the kernel knows about."""
    TIMEOUT = "timeout"
    PROCESS_COMPLETION = "process_completion"
    RESOURCE_GRANTED = "resource_granted"
    CONDITION = "condition"
    USER_SIGNAL = "user_signal"

    # Kernel internal
    INITIALIZE = "initialize"
    INTERRUPT = "interrupt"


PENDING = object()


class Event:
    """Event in the discrete event simulation.

    Attributes:
        env: Environment the event belongs to
        kind: Kind of event
        callbacks: Callables run with the event when it is processed, in
            registration order. None once processed.
        scheduled_time: Virtual time the event fires at, set when triggered
        sequence_id: Tie-breaker issued by the environment when triggered
        cancelled: Whether the event was cancelled
        defused: Whether a failure carried by the event has been observed
    """

    kind = EventKind.USER_SIGNAL
    cancellable = True

    def __init__(self, env, kind: Optional[EventKind] = None):
        self.env = env
        if kind is not None:
            self.kind = kind
        self.callbacks: Optional[List[Callable[['Event'], None]]] = []
        self.scheduled_time: Optional[float] = None
        self.sequence_id: Optional[int] = None
        self.cancelled = False
        self.defused = False
        self._value: Any = PENDING
        self._ok: Optional[bool] = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value}, "
            f"time={self.scheduled_time}, seq={self.sequence_id})"
        )

    @property
    def triggered(self) -> bool:
        """True once the outcome is fixed and the event is queued."""
        return self._value is not PENDING

    @property
    def processed(self) -> bool:
        """True once the event has been popped from the queue."""
        return self.callbacks is None

    @property
    def ok(self) -> bool:
        """True if the event succeeded, False if it failed."""
        if not self.triggered:
            raise UsageError(f"{self} has not been triggered yet")
        return self._ok

    @property
    def value(self) -> Any:
        """Payload delivered to waiters (the exception for failed events)."""
        if not self.triggered:
            raise UsageError(f"Value of {self} is not yet available")
        return self._value

    def _trigger(self, ok: bool, value: Any, delay: float = 0.0) -> None:
        if self.triggered:
            raise UsageError(f"{self} has already been triggered")
        self._ok = ok
        self._value = value
        self.env.schedule(self, delay)

    def succeed(self, value: Any = None) -> 'Event':
        """Trigger the event successfully at the current time.

        Args:
            value: Payload delivered to waiters

        Returns:
            The event itself
        """
        self._trigger(True, value)
        return self

    def fail(self, exception: BaseException) -> 'Event':
        """Trigger the event as failed at the current time.

        Waiters get ``exception`` raised at their suspension point.
        """
        if not isinstance(exception, BaseException):
            raise UsageError(f"{exception!r} is not an exception")
        self._trigger(False, exception)
        return self

    def cancel(self) -> None:
        """Mark the event cancelled.

        The queue entry stays where it is and is skipped when popped.
        Anyone still waiting on the event is failed with a ``UsageError``
        at the current time through a ``CancellationNotice``.

        Raises:
            UsageError: If the event has already been processed
        """
        if self.processed:
            raise UsageError(f"Cannot cancel {self}, it was already processed")
        if self.cancelled:
            return
        self.cancelled = True
        self._on_cancel()

        waiters, self.callbacks = self.callbacks, []
        if waiters:
            CancellationNotice(self, waiters)

    def _on_cancel(self) -> None:
        """Hook for subclasses owning external state (queues, sub-events)."""

    def __or__(self, other: 'Event') -> 'Condition':
        return AnyOf(self.env, [self, other])

    def __and__(self, other: 'Event') -> 'Condition':
        return AllOf(self.env, [self, other])


class CancellationNotice(Event):
    """Fails, at the current time, whoever waited on a cancelled event.

    Attributes:
        origin: The cancelled event the waiters were suspended on
    """

    cancellable = False

    def __init__(self, origin: Event, waiters: Iterable[Callable[[Event], None]] = ()):
        super().__init__(origin.env, origin.kind)
        self.origin = origin
        self.callbacks.extend(waiters)
        self._trigger(False, UsageError(f"{origin} was cancelled and will never fire"))


class Timeout(Event):
    """Event that fires ``delay`` time units after its creation."""

    kind = EventKind.TIMEOUT

    def __init__(self, env, delay: float, value: Any = None):
        if delay < 0:
            raise UsageError(f"Negative delay {delay}")
        super().__init__(env)
        self.delay = delay
        self._trigger(True, value, delay)

    def __repr__(self) -> str:
        return f"Timeout(delay={self.delay}, time={self.scheduled_time}, seq={self.sequence_id})"


class ConditionValue:
    """Outcome of a condition: the sub-events that fired and their values.

    Supports ``event in value``, ``value[event]`` and comparison with a dict.
    """

    def __init__(self, events: Iterable[Event] = ()):
        self.events = list(events)

    def __getitem__(self, event: Event) -> Any:
        if event not in self.events:
            raise KeyError(event)
        return event.value

    def __contains__(self, event: Event) -> bool:
        return event in self.events

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def __eq__(self, other) -> bool:
        if isinstance(other, ConditionValue):
            return self.events == other.events
        return self.todict() == other

    def __repr__(self) -> str:
        return f"<ConditionValue {self.todict()}>"

    def keys(self):
        return list(self.events)

    def values(self):
        return [event.value for event in self.events]

    def items(self):
        return [(event, event.value) for event in self.events]

    def todict(self) -> dict:
        return dict(self.items())


class Condition(Event):
    """Synthetic event fed by several sub-events.

    ``evaluate(events, count)`` decides whether enough sub-events have fired.
    Once the condition triggers (or fails because a sub-event failed), every
    sub-event that is still pending and that nothing else waits on is
    cancelled.
    """

    kind = EventKind.CONDITION

    def __init__(self, env, evaluate: Callable[[List[Event], int], bool],
                 events: Iterable[Event]):
        super().__init__(env)
        self._evaluate = evaluate
        self._events = list(events)
        self._fired: List[Event] = []
        self._lost: List[Event] = []

        for event in self._events:
            if event.env is not env:
                raise UsageError("Cannot mix events from different environments")

        if not self._events:
            self.succeed(ConditionValue())
            return

        for event in self._events:
            if event.cancelled:
                self._lose(event)
            elif event.processed:
                self._check(event)
            else:
                event.callbacks.append(self._check)

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def _check(self, event: Event) -> None:
        if self.triggered or self.cancelled:
            return

        if isinstance(event, CancellationNotice):
            event.defused = True
            self._lose(event.origin)
            return

        if not event._ok:
            event.defused = True
            self.fail(event._value)
            self._abandon_pending()
            return

        self._fired.append(event)
        if self._evaluate(self._events, len(self._fired)):
            self.succeed(ConditionValue(self._fired))
            self._abandon_pending()

    def _lose(self, event: Event) -> None:
        """Drop a cancelled sub-event; fail once the others cannot satisfy the condition."""
        if self.triggered or self.cancelled:
            return
        self._lost.append(event)
        reachable = len(self._events) - len(self._lost)
        if not self._evaluate(self._events, reachable):
            self.fail(UsageError(f"{self} can no longer fire, {event} was cancelled"))
            self._abandon_pending()

    def _abandon_pending(self) -> None:
        for event in self._events:
            if event.processed:
                continue
            if self._check in event.callbacks:
                event.callbacks.remove(self._check)
            if not event.callbacks and event.cancellable and not event.cancelled:
                event.cancel()

    def _on_cancel(self) -> None:
        self._abandon_pending()

    @staticmethod
    def all_events(events: List[Event], count: int) -> bool:
        return len(events) == count

    @staticmethod
    def any_events(events: List[Event], count: int) -> bool:
        return count > 0 or len(events) == 0


class AllOf(Condition):
    """Fires once every sub-event has fired."""

    def __init__(self, env, events: Iterable[Event]):
        super().__init__(env, Condition.all_events, events)


class AnyOf(Condition):
    """Fires as soon as the first sub-event fires."""

    def __init__(self, env, events: Iterable[Event]):
        super().__init__(env, Condition.any_events, events)
