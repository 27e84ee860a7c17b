"""
SPL import orchestrator.

Imports one SPL XML file into a persistence scope:

1. Parse and validate the XML. A parse error or a root element other than
   <document> ends the import before any persistence.
2. Acquire one persistence scope for the whole file.
3. Parse the document metadata. Without a Document nothing else can be
   linked, so a failure here ends the import.
4. Parse the author and the structured body (sections, products, ...).
5. Finalize the result: success means no errors were recorded.

Usage:
    from splimport.ingestion import SplImporter
    from splimport.storage import InMemoryStore

    store = InMemoryStore()
    importer = SplImporter(store.scope)
    result = await importer.import_xml(xml_text, "label.xml")
"""

import asyncio
from pathlib import Path

from lxml import etree

from splimport.config import Settings, get_settings
from splimport.exceptions import InvalidSplDocumentError
from splimport.ingestion.constants import E
from splimport.ingestion.registry import ParserKind, ParserRegistry
from splimport.ingestion.result import ImportResult
from splimport.ingestion.session import ParseSession, ProgressCallback
from splimport.ingestion.xmltree import Element, child, local_name
from splimport.logging import get_logger
from splimport.storage.base import ScopeFactory

logger = get_logger(__name__, component="importer")

MESSAGE_PARSE_ERROR = "XML parsing error."
MESSAGE_INVALID_ROOT = "XML root element is not <document>."
ERROR_INVALID_ROOT = "Invalid SPL XML structure."
MESSAGE_DOCUMENT_FAILED = "Failed to import document metadata."
MESSAGE_CRITICAL = "A critical error occurred during processing."


def parse_spl_xml(xml: str | bytes) -> Element:
    """
    Parse SPL text into a tree and check its root element.

    Raises:
        etree.XMLSyntaxError: The text is not well-formed XML.
        ValueError: lxml rejected the input before parsing it.
        InvalidSplDocumentError: The root element is not <document>.
    """
    if isinstance(xml, str):
        xml = xml.encode("utf-8")

    # No network access and no entity expansion for untrusted input
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)
    root = etree.fromstring(xml, parser=parser)

    if root is None or local_name(root) != E.DOCUMENT:
        raise InvalidSplDocumentError(MESSAGE_INVALID_ROOT)
    return root


class SplImporter:
    """
    Imports SPL files through a persistence scope factory.

    One importer can serve many files, including concurrently: every call
    acquires its own scope and builds its own result.
    """

    def __init__(
        self,
        scope_factory: ScopeFactory,
        registry: ParserRegistry | None = None,
        settings: Settings | None = None,
    ):
        self.scope_factory = scope_factory
        self.registry = registry or ParserRegistry.default()
        self.settings = settings or get_settings()

    async def import_xml(
        self,
        xml: str | bytes,
        file_name: str,
        report_progress: ProgressCallback | None = None,
    ) -> ImportResult:
        result = ImportResult(file_name=file_name)
        log = logger.bind(file_name=file_name)

        def progress(message: str) -> None:
            if report_progress is not None:
                report_progress(message)

        progress(f"Starting file {file_name}...")

        try:
            root = parse_spl_xml(xml)
        except (etree.XMLSyntaxError, ValueError) as e:
            log.error("xml_parse_failed", error=str(e))
            return result.abort(MESSAGE_PARSE_ERROR, str(e))
        except InvalidSplDocumentError:
            log.error("invalid_spl_root")
            return result.abort(MESSAGE_INVALID_ROOT, ERROR_INVALID_ROOT)

        try:
            async with self.scope_factory() as scope:
                session = ParseSession(
                    scope=scope,
                    logger=log,
                    file_name=file_name,
                    root=root,
                    section_parser=self.registry.section_parser,
                    settings=self.settings,
                    report_progress=report_progress,
                )
                await self._import_document(root, session, result)
        except Exception as e:
            log.exception("import_failed", error=str(e))
            return result.abort(MESSAGE_CRITICAL, f"Critical error: {e}")

        progress(f"Completed file {file_name}")
        log.info(
            "import_completed",
            success=result.success,
            created=result.total_created,
            errors=len(result.errors),
        )
        return result

    async def _import_document(self, root: Element, session: ParseSession, result: ImportResult) -> None:
        session.progress("Parsing <document>...")
        document_outcome = await self.registry.get(ParserKind.DOCUMENT).parse(root, session)
        result.absorb(document_outcome)

        if not document_outcome.success or document_outcome.document_id is None:
            result.abort(MESSAGE_DOCUMENT_FAILED)
            return

        session = session.with_document(document_outcome.document_id)

        author_el = child(root, E.AUTHOR)
        if author_el is not None:
            session.progress("Parsing <author>...")
            result.absorb(await self.registry.get(ParserKind.AUTHOR).parse(author_el, session))

        body_el = child(root, E.COMPONENT, E.STRUCTURED_BODY)
        if body_el is not None:
            session.progress("Parsing <structuredBody>...")
            result.absorb(await self.registry.get(ParserKind.STRUCTURED_BODY).parse(body_el, session))

        result.finalize()


async def import_spl(
    path: Path,
    scope_factory: ScopeFactory,
    report_progress: ProgressCallback | None = None,
) -> ImportResult:
    """Import one SPL file from disk."""
    importer = SplImporter(scope_factory)
    return await importer.import_xml(path.read_bytes(), path.name, report_progress)


def import_spl_sync(
    path: Path,
    scope_factory: ScopeFactory,
    report_progress: ProgressCallback | None = None,
) -> ImportResult:
    """
    Synchronous wrapper for import_spl.

    Convenience function for scripts and callers without an event loop.
    """
    return asyncio.run(import_spl(path, scope_factory, report_progress))
