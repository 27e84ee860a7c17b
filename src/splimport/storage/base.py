"""
Persistence collaborator contracts.

The import pipeline never talks to a database directly. It acquires one
persistence scope per file (one logical transaction) and resolves a
repository per entity type from it. ``create`` assigns the generated identity
to ``entity.id`` before it returns.
"""

from contextlib import AbstractAsyncContextManager
from typing import Callable, Protocol, TypeVar

T = TypeVar("T")


class Repository(Protocol[T]):
    """Async "create and assign identity" capability for one entity type."""

    async def create(self, entity: T) -> T:
        ...


class PersistenceScope(Protocol):
    """Unit of work shared by every create issued while importing one file."""

    def repository(self, entity_type: type[T]) -> Repository[T]:
        ...


# Called once per file; the returned context manager releases the scope on exit.
ScopeFactory = Callable[[], AbstractAsyncContextManager[PersistenceScope]]
