"""Counted resources with a FIFO or priority waiting queue."""

from typing import List, Optional

from ..core.events import Event, EventKind
from ..core.exceptions import CapacityExceeded, OverRelease, UsageError
from ..configs import DISCIPLINES
from ..utils.logger import setup_logger


class Request(Event):
    """Event granted once the requested amount has been allocated.

    Usable as a context manager: leaving the block releases the amount if
    it was granted, or withdraws the request if it is still queued.

        with resource.request() as req:
            yield req
            yield env.timeout(service_time)
    """

    kind = EventKind.RESOURCE_GRANTED

    def __init__(self, resource: 'Resource', amount: int, priority: int):
        super().__init__(resource.env)
        self.resource = resource
        self.amount = amount
        self.priority = priority
        self.released = False

    def __repr__(self) -> str:
        return (
            f"Request(amount={self.amount}, priority={self.priority}, "
            f"time={self.scheduled_time}, seq={self.sequence_id})"
        )

    def __enter__(self) -> 'Request':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if self.cancelled or self.released:
            return
        if self.triggered:
            self.release()
        else:
            self.cancel()

    @property
    def granted(self) -> bool:
        return self.triggered and self._ok

    def release(self) -> None:
        """Give the granted amount back to the resource."""
        if not self.granted:
            raise UsageError(f"{self} has not been granted")
        if self.released:
            raise UsageError(f"{self} was already released")
        self.released = True
        self.resource.release(self.amount)

    def _on_cancel(self) -> None:
        self.resource._withdraw(self)


class Resource:
    """Capacity-bounded contention point.

    Requests are granted strictly in queue order: a request that does not
    fit blocks every request behind it, even smaller ones. With the
    ``priority`` discipline the queue is ordered by request priority
    (lower first) and FIFO within equal priority.
    """

    def __init__(self, env, capacity: int = 1, discipline: Optional[str] = None):
        """Initialize resource.

        Args:
            env: Owning environment
            capacity: Total units available, at least 1
            discipline: ``fifo`` or ``priority``; defaults to the
                environment's ``resources.discipline`` setting
        """
        if capacity < 1:
            raise UsageError(f"Capacity must be at least 1, got {capacity}")

        discipline = discipline or env.default_discipline
        if discipline not in DISCIPLINES:
            raise UsageError(f"Unknown queue discipline {discipline!r}")

        self.env = env
        self.capacity = capacity
        self.discipline = discipline
        self.logger = setup_logger(self.__class__.__name__)

        self.in_use = 0
        self.queue: List[Request] = []

    def __repr__(self) -> str:
        return (
            f"Resource(capacity={self.capacity}, in_use={self.in_use}, "
            f"queued={len(self.queue)}, discipline={self.discipline})"
        )

    @property
    def available(self) -> int:
        return self.capacity - self.in_use

    def request(self, amount: int = 1, priority: int = 0) -> Request:
        """Ask for ``amount`` units.

        Args:
            amount: Units requested
            priority: Queue priority, only used by the priority discipline

        Returns:
            Request event, fired at the current time if the units are free

        Raises:
            UsageError: If amount is not positive
            CapacityExceeded: If amount can never fit
        """
        if amount <= 0:
            raise UsageError(f"Requested amount must be positive, got {amount}")
        if amount > self.capacity:
            raise CapacityExceeded(amount, self.capacity)

        request = Request(self, amount, priority)
        self._enqueue(request)
        self._grant()
        return request

    def release(self, amount: int = 1) -> None:
        """Return ``amount`` units and grant queued requests that now fit.

        Raises:
            UsageError: If amount is not positive
            OverRelease: If more than is in use would be released
        """
        if amount <= 0:
            raise UsageError(f"Released amount must be positive, got {amount}")
        if amount > self.in_use:
            raise OverRelease(amount, self.in_use)

        self.in_use -= amount
        self.logger.debug(f"t={self.env.now}: released {amount} ({self.in_use}/{self.capacity})")
        self._grant()

    def _enqueue(self, request: Request) -> None:
        if self.discipline == 'priority':
            for index, queued in enumerate(self.queue):
                if queued.priority > request.priority:
                    self.queue.insert(index, request)
                    return
        self.queue.append(request)

    def _grant(self) -> None:
        while self.queue and self.in_use + self.queue[0].amount <= self.capacity:
            request = self.queue.pop(0)
            self.in_use += request.amount
            request.succeed(request)
            self.logger.debug(
                f"t={self.env.now}: granted {request.amount} ({self.in_use}/{self.capacity})"
            )

    def _withdraw(self, request: Request) -> None:
        if request in self.queue:
            self.queue.remove(request)
            self._grant()
        elif request.granted and not request.released:
            request.released = True
            self.release(request.amount)
