"""Exception types raised inside the SPL import pipeline."""


class SplImportError(Exception):
    """Base class for import pipeline errors."""


class InvalidSplDocumentError(SplImportError):
    """The XML is not a structurally valid SPL document."""


class PersistenceError(SplImportError):
    """A repository could not persist an entity or assign its identity."""


class ParserNotRegisteredError(SplImportError, KeyError):
    """No parser is registered for the requested parser kind."""
