"""Resource primitives built on events."""

from .resource import Request, Resource
from .container import Container, ContainerGet, ContainerPut
from .store import Store, StoreGet, StorePut

__all__ = [
    "Resource",
    "Request",
    "Container",
    "ContainerPut",
    "ContainerGet",
    "Store",
    "StorePut",
    "StoreGet",
]
