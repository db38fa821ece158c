"""Container: a buffer holding a continuous or discrete amount."""

from ..core.exceptions import CapacityExceeded, UsageError
from .base import BaseBuffer, BufferGet, BufferPut


class ContainerPut(BufferPut):
    def __init__(self, container: 'Container', amount: float):
        super().__init__(container)
        self.amount = amount


class ContainerGet(BufferGet):
    def __init__(self, container: 'Container', amount: float):
        super().__init__(container)
        self.amount = amount


class Container(BaseBuffer):
    """Numeric level kept within ``[0, capacity]``.

    ``put(amount)`` waits for space, ``get(amount)`` waits for content.
    Both events carry the amount moved as their value.
    """

    def __init__(self, env, capacity: float = float('inf'), init: float = 0):
        super().__init__(env, capacity)
        if init < 0 or init > capacity:
            raise UsageError(f"Initial level {init} outside [0, {capacity}]")
        self.level = init

    def __repr__(self) -> str:
        return f"Container(level={self.level}, capacity={self.capacity})"

    def _validate(self, amount: float) -> None:
        if amount <= 0:
            raise UsageError(f"Amount must be positive, got {amount}")
        if amount > self.capacity:
            raise CapacityExceeded(amount, self.capacity)

    def put(self, amount: float) -> ContainerPut:
        self._validate(amount)
        return self._submit_put(ContainerPut(self, amount))

    def get(self, amount: float) -> ContainerGet:
        self._validate(amount)
        return self._submit_get(ContainerGet(self, amount))

    def _do_put(self, event: ContainerPut) -> bool:
        if self.level + event.amount > self.capacity:
            return False
        self.level += event.amount
        event.succeed(event.amount)
        return True

    def _do_get(self, event: ContainerGet) -> bool:
        if event.amount > self.level:
            return False
        self.level -= event.amount
        event.succeed(event.amount)
        return True
