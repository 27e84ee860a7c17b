"""
Persistence collaborators for the import pipeline.

This module provides:
- The repository / persistence-scope contracts the parsers depend on
- An in-memory store implementing them
"""

from splimport.storage.base import PersistenceScope, Repository, ScopeFactory
from splimport.storage.memory import InMemoryRepository, InMemoryScope, InMemoryStore

__all__ = [
    "PersistenceScope",
    "Repository",
    "ScopeFactory",
    "InMemoryStore",
    "InMemoryScope",
    "InMemoryRepository",
]
