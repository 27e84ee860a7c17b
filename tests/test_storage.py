"""Tests for the in-memory persistence store."""

import asyncio

import pytest

from splimport.exceptions import PersistenceError
from splimport.models import Document, Section


def test_create_assigns_identity_per_type(store):
    async def run():
        async with store.scope() as scope:
            first = await scope.repository(Section).create(Section(title="a"))
            second = await scope.repository(Section).create(Section(title="b"))
            document = await scope.repository(Document).create(Document())
        return first, second, document

    first, second, document = asyncio.run(run())

    assert (first.id, second.id) == (1, 2)
    assert document.id == 1
    assert [s.title for s in store.rows(Section)] == ["a", "b"]


def test_scope_released_on_error(store):
    async def run():
        async with store.scope():
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(run())

    assert store.scopes_opened == 1
    assert store.open_scopes == 0


def test_released_scope_rejects_writes(store):
    async def run():
        async with store.scope() as scope:
            repository = scope.repository(Section)
        await repository.create(Section())

    with pytest.raises(PersistenceError):
        asyncio.run(run())

    assert store.count(Section) == 0


def test_repository_rejects_other_entity_types(store):
    async def run():
        async with store.scope() as scope:
            await scope.repository(Section).create(Document())

    with pytest.raises(PersistenceError):
        asyncio.run(run())


def test_clear_resets_identities(store):
    async def run():
        async with store.scope() as scope:
            return await scope.repository(Section).create(Section())

    asyncio.run(run())
    store.clear()
    section = asyncio.run(run())

    assert section.id == 1
    assert store.count(Section) == 1
