"""Store: a buffer of discrete Python objects."""

from typing import Any, List

from .base import BaseBuffer, BufferGet, BufferPut


class StorePut(BufferPut):
    def __init__(self, store: 'Store', item: Any):
        super().__init__(store)
        self.item = item


class StoreGet(BufferGet):
    pass


class Store(BaseBuffer):
    """FIFO buffer of up to ``capacity`` items.

    ``put(item)`` fires once the item is stored, ``get()`` fires with the
    oldest item.
    """

    def __init__(self, env, capacity: float = float('inf')):
        super().__init__(env, capacity)
        self.items: List[Any] = []

    def __repr__(self) -> str:
        return f"Store(items={len(self.items)}, capacity={self.capacity})"

    def __len__(self) -> int:
        return len(self.items)

    def put(self, item: Any) -> StorePut:
        return self._submit_put(StorePut(self, item))

    def get(self) -> StoreGet:
        return self._submit_get(StoreGet(self))

    def _do_put(self, event: StorePut) -> bool:
        if len(self.items) >= self.capacity:
            return False
        self.items.append(event.item)
        event.succeed(event.item)
        return True

    def _do_get(self, event: StoreGet) -> bool:
        if not self.items:
            return False
        event.succeed(self.items.pop(0))
        return True
