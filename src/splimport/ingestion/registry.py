"""
Parser registry.

Parsers are looked up by ``ParserKind`` rather than by element name. The set
of kinds is closed; replacing the handler for a kind is an explicit
``register`` call:

    registry = ParserRegistry.default()
    registry.register(ParserKind.AUTHOR, MyAuthorParser())
"""

from enum import Enum
from typing import Any

from splimport.exceptions import ParserNotRegisteredError
from splimport.ingestion.parsers import (
    AuthorParser,
    DocumentParser,
    SectionParser,
    StructuredBodyParser,
)


class ParserKind(str, Enum):
    DOCUMENT = "document"
    AUTHOR = "author"
    STRUCTURED_BODY = "structuredBody"
    SECTION = "section"


class ParserRegistry:
    def __init__(self):
        self._parsers: dict[ParserKind, Any] = {}

    def register(self, kind: ParserKind, parser: Any) -> None:
        self._parsers[ParserKind(kind)] = parser

    def get(self, kind: ParserKind) -> Any:
        try:
            return self._parsers[kind]
        except KeyError:
            raise ParserNotRegisteredError(f"No parser registered for {kind!r}") from None

    def __contains__(self, kind: ParserKind) -> bool:
        return kind in self._parsers

    @property
    def section_parser(self) -> SectionParser:
        return self.get(ParserKind.SECTION)

    @classmethod
    def default(cls) -> "ParserRegistry":
        """Registry wired with the standard parsers."""
        registry = cls()
        registry.register(ParserKind.DOCUMENT, DocumentParser())
        registry.register(ParserKind.AUTHOR, AuthorParser())
        registry.register(ParserKind.STRUCTURED_BODY, StructuredBodyParser())
        registry.register(ParserKind.SECTION, SectionParser())
        return registry
