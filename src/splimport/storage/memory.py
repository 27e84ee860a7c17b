"""
In-memory persistence for imported SPL entities.

Usage:
    from splimport.storage import InMemoryStore

    store = InMemoryStore()
    importer = SplImporter(store.scope)
    result = await importer.import_xml(xml, "label.xml")

    for section in store.rows(Section):
        print(section.id, section.title)
"""

import itertools
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, TypeVar

from splimport.exceptions import PersistenceError
from splimport.logging import get_logger

logger = get_logger(__name__, component="storage")

T = TypeVar("T")


class InMemoryStore:
    """
    Table-per-entity-type store with integer identities.

    Rows are written as soon as they are created (best-effort, no rollback),
    so a file that fails partway keeps everything persisted before the
    failure. Scope bookkeeping lets callers verify that every acquired scope
    was released.
    """

    def __init__(self):
        self._tables: dict[type, list[Any]] = defaultdict(list)
        self._identities: dict[type, itertools.count] = defaultdict(lambda: itertools.count(1))
        self.scopes_opened = 0
        self.scopes_released = 0

    @property
    def open_scopes(self) -> int:
        return self.scopes_opened - self.scopes_released

    @asynccontextmanager
    async def scope(self) -> AsyncIterator["InMemoryScope"]:
        """Acquire a persistence scope; released on every exit path."""
        self.scopes_opened += 1
        scope = InMemoryScope(self, scope_number=self.scopes_opened)
        logger.debug("scope_acquired", scope=scope.scope_number)

        try:
            yield scope
        finally:
            scope.closed = True
            self.scopes_released += 1
            logger.debug("scope_released", scope=scope.scope_number)

    def add(self, entity: Any) -> Any:
        """Store an entity and assign the next identity for its type."""
        entity_type = type(entity)
        entity.id = next(self._identities[entity_type])
        self._tables[entity_type].append(entity)
        return entity

    def rows(self, entity_type: type[T]) -> list[T]:
        """Snapshot of every stored row of one entity type, in creation order."""
        return list(self._tables.get(entity_type, []))

    def count(self, entity_type: type) -> int:
        return len(self._tables.get(entity_type, []))

    def clear(self) -> None:
        self._tables.clear()
        self._identities.clear()


class InMemoryRepository(Generic[T]):
    """Repository bound to one scope and one entity type."""

    def __init__(self, scope: "InMemoryScope", entity_type: type[T]):
        self._scope = scope
        self.entity_type = entity_type

    async def create(self, entity: T) -> T:
        if self._scope.closed:
            raise PersistenceError(
                f"Cannot create {self.entity_type.__name__}: persistence scope already released"
            )
        if not isinstance(entity, self.entity_type):
            raise PersistenceError(
                f"Repository for {self.entity_type.__name__} cannot store {type(entity).__name__}"
            )
        return self._scope.store.add(entity)


class InMemoryScope:
    def __init__(self, store: InMemoryStore, scope_number: int):
        self.store = store
        self.scope_number = scope_number
        self.closed = False
        self._repositories: dict[type, InMemoryRepository] = {}

    def repository(self, entity_type: type[T]) -> InMemoryRepository[T]:
        if entity_type not in self._repositories:
            self._repositories[entity_type] = InMemoryRepository(self, entity_type)
        return self._repositories[entity_type]
