"""Element parsers for the SPL import pipeline."""

from splimport.ingestion.parsers.author import AuthorParser
from splimport.ingestion.parsers.document import DocumentParser
from splimport.ingestion.parsers.product import ProductExtractor
from splimport.ingestion.parsers.section import SectionParser, StructuredBodyParser

__all__ = [
    "AuthorParser",
    "DocumentParser",
    "ProductExtractor",
    "SectionParser",
    "StructuredBodyParser",
]
