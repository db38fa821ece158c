"""Shared machinery for producer/consumer buffers."""

from abc import ABC, abstractmethod
from typing import List

from ..core.events import Event, EventKind
from ..core.exceptions import UsageError


class BufferPut(Event):
    """Event fired once a put has been accepted by its buffer."""

    kind = EventKind.RESOURCE_GRANTED

    def __init__(self, buffer: 'BaseBuffer'):
        super().__init__(buffer.env)
        self.buffer = buffer

    def _on_cancel(self) -> None:
        self.buffer._withdraw(self)


class BufferGet(Event):
    """Event fired once a get has been served by its buffer."""

    kind = EventKind.RESOURCE_GRANTED

    def __init__(self, buffer: 'BaseBuffer'):
        super().__init__(buffer.env)
        self.buffer = buffer

    def _on_cancel(self) -> None:
        self.buffer._withdraw(self)


class BaseBuffer(ABC):
    """Capacity-bounded buffer with FIFO put and get queues.

    Each side is served strictly in arrival order. After any change both
    queues are re-evaluated until neither head can make progress.
    """

    def __init__(self, env, capacity: float):
        if capacity <= 0:
            raise UsageError(f"Capacity must be positive, got {capacity}")
        self.env = env
        self.capacity = capacity
        self.put_queue: List[BufferPut] = []
        self.get_queue: List[BufferGet] = []

    @abstractmethod
    def _do_put(self, event: BufferPut) -> bool:
        """Apply the put if it fits and trigger it. Returns True on success."""

    @abstractmethod
    def _do_get(self, event: BufferGet) -> bool:
        """Serve the get if possible and trigger it. Returns True on success."""

    def _submit_put(self, event: BufferPut) -> BufferPut:
        self.put_queue.append(event)
        self._settle()
        return event

    def _submit_get(self, event: BufferGet) -> BufferGet:
        self.get_queue.append(event)
        self._settle()
        return event

    def _settle(self) -> None:
        progress = True
        while progress:
            progress = False
            while self.put_queue and self._do_put(self.put_queue[0]):
                self.put_queue.pop(0)
                progress = True
            while self.get_queue and self._do_get(self.get_queue[0]):
                self.get_queue.pop(0)
                progress = True

    def _withdraw(self, event: Event) -> None:
        # Operations that were already served stay applied.
        if event in self.put_queue:
            self.put_queue.remove(event)
        elif event in self.get_queue:
            self.get_queue.remove(event)
        else:
            return
        self._settle()
