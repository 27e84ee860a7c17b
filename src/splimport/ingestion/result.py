"""
Import result accumulation.

Every parser step returns a ``ParseOutcome``: its own success flag, the errors
it recorded and how many entities of each type it created. Outcomes merge
upward (ingredient -> product -> section -> body) and the orchestrator
absorbs each top-level outcome into the file's ``ImportResult``.

``ImportResult.success`` is decided once, by ``finalize()``, as "no errors
were recorded". No individual step sets it.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from splimport import models

MESSAGE_SUCCESS = "Imported successfully."
MESSAGE_WITH_ERRORS = "Imported with errors."

# Entity types reported together as "section attributes"
SECTION_ATTRIBUTE_TYPES = (
    models.SectionHierarchy,
    models.SectionTextContent,
    models.TextList,
    models.TextListItem,
    models.TextTable,
    models.TextTableRow,
    models.TextTableCell,
    models.SectionExcerptHighlight,
    models.ObservationMedia,
    models.RenderedMedia,
)


def _key(entity_type: type | Any) -> str:
    if not isinstance(entity_type, type):
        entity_type = type(entity_type)
    return entity_type.__name__


@dataclass
class ParseOutcome:
    """Partial result of one parser step."""
    success: bool = True
    errors: list[str] = field(default_factory=list)
    created: Counter = field(default_factory=Counter)

    def fail(self, message: str) -> "ParseOutcome":
        self.success = False
        self.errors.append(message)
        return self

    def record(self, entity: Any, count: int = 1) -> None:
        """Count a created entity (or entity type)."""
        self.created[_key(entity)] += count

    def count(self, entity_type: type) -> int:
        return self.created[_key(entity_type)]

    def merge(self, other: "ParseOutcome") -> "ParseOutcome":
        if not other.success:
            self.success = False
        self.errors.extend(other.errors)
        self.created.update(other.created)
        return self


@dataclass
class DocumentOutcome(ParseOutcome):
    document_id: int | None = None


@dataclass
class StructuredBodyOutcome(ParseOutcome):
    structured_body_id: int | None = None


@dataclass
class SectionOutcome(ParseOutcome):
    """Outcome of one section subtree; ``section_id`` is set once the section exists."""
    section_id: int | None = None


@dataclass
class ImportResult:
    """
    File-level import result.

    Created at the start of a file, absorbs every parser outcome, finalized
    once at the end.
    """
    file_name: str | None = None
    success: bool = False
    message: str | None = None
    errors: list[str] = field(default_factory=list)
    created: Counter = field(default_factory=Counter)

    def absorb(self, outcome: ParseOutcome) -> None:
        self.errors.extend(outcome.errors)
        self.created.update(outcome.created)

    def abort(self, message: str, error: str | None = None) -> "ImportResult":
        """Stop with a failure message; ``error`` is appended when given."""
        if error is not None:
            self.errors.append(error)
        self.success = False
        self.message = message
        return self

    def finalize(self) -> "ImportResult":
        self.success = not self.errors
        self.message = MESSAGE_SUCCESS if self.success else MESSAGE_WITH_ERRORS
        return self

    def count(self, entity_type: type) -> int:
        return self.created[_key(entity_type)]

    @property
    def total_created(self) -> int:
        return sum(self.created.values())

    @property
    def documents_created(self) -> int:
        return self.count(models.Document)

    @property
    def organizations_created(self) -> int:
        return self.count(models.Organization)

    @property
    def sections_created(self) -> int:
        return self.count(models.Section)

    @property
    def products_created(self) -> int:
        return self.count(models.Product)

    @property
    def ingredients_created(self) -> int:
        return self.count(models.Ingredient)

    @property
    def section_attributes_created(self) -> int:
        return sum(self.count(entity_type) for entity_type in SECTION_ATTRIBUTE_TYPES)

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "success": self.success,
            "message": self.message,
            "errors": list(self.errors),
            "created": dict(self.created),
        }

    def __repr__(self) -> str:
        return (
            f"ImportResult(file={self.file_name}, success={self.success}, "
            f"created={self.total_created}, errors={len(self.errors)})"
        )
