"""Event queue implementation for discrete event simulation."""

import heapq
import itertools
from typing import List, Optional, Tuple

from .events import Event
from .exceptions import EmptySchedule, UsageError


class EventQueue:
    """Priority queue for managing simulation events.

    Events are ordered by time, with earlier events processed first.
    For events at the same time, the sequence id issued on insertion
    determines order, so equal-time events fire in the order they were
    scheduled.
    """

    def __init__(self):
        """Initialize empty event queue."""
        self._queue: List[Tuple[float, int, Event]] = []
        self._sequence = itertools.count()

    def schedule(self, event: Event, time: float) -> None:
        """Add event to the queue.

        Args:
            event: Event to add
            time: Virtual time the event fires at

        Raises:
            UsageError: If the event is already queued or time is negative
        """
        if event.sequence_id is not None:
            raise UsageError(f"{event} is already scheduled")
        if time < 0:
            raise UsageError("Event time cannot be negative")
        event.scheduled_time = time
        event.sequence_id = next(self._sequence)
        heapq.heappush(self._queue, (time, event.sequence_id, event))

    def pop_next(self) -> Event:
        """Remove and return the next event, cancelled or not.

        Returns:
            Next event to process

        Raises:
            EmptySchedule: If queue is empty
        """
        if self.is_empty():
            raise EmptySchedule("Cannot pop from empty event queue")
        return heapq.heappop(self._queue)[2]

    def peek(self) -> Optional[Event]:
        """Return the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        return self._queue[0][2] if self._queue else None

    def next_live_time(self) -> float:
        """Time of the earliest event that is not cancelled, or inf."""
        return min(
            (time for time, _, event in self._queue if not event.cancelled),
            default=float('inf'),
        )

    def cancel(self, event: Event) -> None:
        """Mark a queued event cancelled; it is skipped when popped."""
        event.cancel()

    def pending(self) -> List[Event]:
        """Queued events in firing order."""
        return [entry[2] for entry in sorted(self._queue, key=lambda e: e[:2])]

    def is_empty(self) -> bool:
        """Check if queue is empty.

        Returns:
            True if queue is empty
        """
        return len(self._queue) == 0

    def size(self) -> int:
        """Get number of events in queue.

        Returns:
            Number of events
        """
        return len(self._queue)

    def __len__(self) -> int:
        """Get number of events in queue."""
        return len(self._queue)

    def __repr__(self) -> str:
        """String representation of event queue."""
        return f"EventQueue(size={len(self._queue)}, next={self.peek()})"
