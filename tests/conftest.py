"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path

from lxml import etree

SPL_NS = "urn:hl7-org:v3"


@pytest.fixture
def sample_spl_path() -> Path:
    """Path to a sample SPL file for testing."""
    return Path(__file__).parent / "fixtures" / "sample_spl.xml"


@pytest.fixture
def sample_spl_xml(sample_spl_path) -> bytes:
    return sample_spl_path.read_bytes()


@pytest.fixture
def spl_document():
    """Build a namespaced SPL <document> around the given inner markup."""

    def build(inner: str = "", root_tag: str = "document") -> str:
        return (
            f'<{root_tag} xmlns="{SPL_NS}" '
            f'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
            f"{inner}</{root_tag}>"
        )

    return build


@pytest.fixture
def spl_element():
    """Parse a fragment of SPL markup in the HL7 namespace into an element."""

    def build(markup: str):
        wrapped = f'<wrapper xmlns="{SPL_NS}">{markup}</wrapper>'
        return etree.fromstring(wrapped)[0]

    return build


@pytest.fixture
def store():
    from splimport.storage import InMemoryStore

    return InMemoryStore()


@pytest.fixture
def importer(store):
    from splimport.ingestion import SplImporter

    return SplImporter(store.scope)


@pytest.fixture
def make_session(store):
    """
    Build a ParseSession over an open in-memory scope.

    Lets parser tests call a single parser without going through the
    importer.
    """
    from splimport.config import get_settings
    from splimport.ingestion.parsers import SectionParser
    from splimport.ingestion.session import ParseSession
    from splimport.logging import get_logger
    from splimport.storage.memory import InMemoryScope

    def build(root=None, document_id=None, structured_body_id=None, settings=None, progress=None):
        return ParseSession(
            scope=InMemoryScope(store, scope_number=1),
            logger=get_logger("tests", component="parser_test"),
            file_name="test.xml",
            root=root,
            section_parser=SectionParser(),
            settings=settings or get_settings(),
            report_progress=progress,
            document_id=document_id,
            structured_body_id=structured_body_id,
        )

    return build
