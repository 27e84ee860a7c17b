"""
Root <document> metadata.

Every field is optional: a missing or malformed attribute leaves the field
``None``. Only a failure to build or persist the Document itself fails the
step, and the orchestrator treats that as fatal for the file.
"""

from splimport.ingestion.constants import A, E
from splimport.ingestion.result import DocumentOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    child_attr,
    child_text,
    parse_datetime,
    parse_guid,
    parse_int,
    stripped,
)
from splimport.models import Document


def build_document(document_el: Element) -> Document:
    """Extract document identity and metadata from the root element."""
    code_el = child(document_el, E.CODE)

    return Document(
        document_guid=parse_guid(child_attr(document_el, E.ID, attribute=A.ROOT)),
        document_code=attr(code_el, A.CODE),
        document_code_system=attr(code_el, A.CODE_SYSTEM),
        document_display_name=attr(code_el, A.DISPLAY_NAME),
        title=stripped(child_text(document_el, E.TITLE)),
        effective_time=parse_datetime(child_attr(document_el, E.EFFECTIVE_TIME, attribute=A.VALUE)),
        set_guid=parse_guid(child_attr(document_el, E.SET_ID, attribute=A.ROOT)),
        version_number=parse_int(child_attr(document_el, E.VERSION_NUMBER, attribute=A.VALUE)),
    )


class DocumentParser:
    """Parses the root <document> element and persists the Document record."""

    async def parse(self, element: Element, session: ParseSession) -> DocumentOutcome:
        outcome = DocumentOutcome()

        try:
            document = build_document(element)
            document.submission_file_name = session.file_name
            await session.create(document)
        except Exception as e:
            session.logger.exception("document_parse_failed", error=str(e))
            outcome.fail(f"Error parsing document: {e}")
            return outcome

        outcome.document_id = document.id
        outcome.record(document)

        session.logger.info(
            "document_created",
            document_id=document.id,
            document_code=document.document_code,
            set_guid=str(document.set_guid) if document.set_guid else None,
        )
        return outcome
