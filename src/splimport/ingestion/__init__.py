"""SPL XML import pipeline."""

from splimport.ingestion.batch import BatchImporter, ZipImportResult, import_zip_archives_sync
from splimport.ingestion.importer import SplImporter, import_spl, import_spl_sync, parse_spl_xml
from splimport.ingestion.registry import ParserKind, ParserRegistry
from splimport.ingestion.result import ImportResult, ParseOutcome

__all__ = [
    "BatchImporter",
    "ImportResult",
    "ParseOutcome",
    "ParserKind",
    "ParserRegistry",
    "SplImporter",
    "ZipImportResult",
    "import_spl",
    "import_spl_sync",
    "import_zip_archives_sync",
    "parse_spl_xml",
]
