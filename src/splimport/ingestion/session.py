"""
Per-file parse session.

A ``ParseSession`` is created once per file and handed to every parser call.
It is immutable: when the orchestrator learns the document or structured body
identity it derives a new session with ``dataclasses.replace``. Results never
live on the session; they travel separately as ``ParseOutcome`` values.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, TypeVar, Union

from splimport.config import Settings
from splimport.exceptions import PersistenceError
from splimport.ingestion.xmltree import Element
from splimport.storage.base import PersistenceScope, Repository

if TYPE_CHECKING:
    from splimport.ingestion.parsers.section import SectionParser

T = TypeVar("T")

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True)
class BodyOwner:
    """A top-level section, owned directly by a structured body."""
    structured_body_id: int

    @property
    def depth(self) -> int:
        return 1


@dataclass(frozen=True)
class ParentSectionOwner:
    """A nested section; the caller links it to its parent once it exists."""
    parent_section_id: int
    depth: int


SectionOwner = Union[BodyOwner, ParentSectionOwner]


@dataclass(frozen=True)
class ParseSession:
    scope: PersistenceScope
    logger: Any
    file_name: str
    root: Element
    section_parser: "SectionParser"
    settings: Settings
    report_progress: ProgressCallback | None = None
    document_id: int | None = None
    structured_body_id: int | None = None

    def repository(self, entity_type: type[T]) -> Repository[T]:
        return self.scope.repository(entity_type)

    async def create(self, entity: T) -> T:
        """Persist an entity through its repository and check it received an identity."""
        created = await self.repository(type(entity)).create(entity)
        if getattr(created, "id", None) is None:
            raise PersistenceError(
                f"{type(entity).__name__} identity was not assigned by the repository"
            )
        return created

    def progress(self, message: str) -> None:
        if self.report_progress is not None:
            self.report_progress(message)

    def with_document(self, document_id: int) -> "ParseSession":
        return replace(self, document_id=document_id)

    def with_structured_body(self, structured_body_id: int) -> "ParseSession":
        return replace(self, structured_body_id=structured_body_id)
