"""
Structured body and the recursive section parser.

Sections nest to any depth. ``SectionParser.parse`` handles one section and
calls itself for every ``component/section`` child. The owner argument says
who the section belongs to:

- ``BodyOwner``: a top-level section; it is created with its
  ``structured_body_id``.
- ``ParentSectionOwner``: a nested section; it is created unlinked and the
  parent writes the SectionHierarchy row after the child has an identity.

Every section is persisted before its payload, its children and its
products, so that all of them can reference its identity.
"""

from typing import Awaitable, Callable

from splimport.ingestion.constants import A, E
from splimport.ingestion.parsers.content import ContentExtractor, extract_highlights
from splimport.ingestion.parsers.indexing import extract_indexing
from splimport.ingestion.parsers.media import MediaOutcome, extract_observation_media
from splimport.ingestion.parsers.product import ProductExtractor
from splimport.ingestion.parsers.tolerance import ToleranceExtractor
from splimport.ingestion.result import ParseOutcome, SectionOutcome, StructuredBodyOutcome
from splimport.ingestion.session import BodyOwner, ParentSectionOwner, ParseSession, SectionOwner
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    child_attr,
    child_text,
    children,
    parse_datetime,
    parse_guid,
    stripped,
)
from splimport.models import Section, SectionHierarchy, StructuredBody

MISSING_DOCUMENT_ERROR = "Cannot parse structuredBody because no document context exists."


def build_section(section_el: Element, owner: SectionOwner) -> Section:
    code_el = child(section_el, E.CODE)

    return Section(
        structured_body_id=owner.structured_body_id if isinstance(owner, BodyOwner) else None,
        section_link_guid=attr(section_el, A.ID),
        section_guid=parse_guid(child_attr(section_el, E.ID, attribute=A.ROOT)),
        section_code=attr(code_el, A.CODE),
        section_code_system=attr(code_el, A.CODE_SYSTEM),
        section_display_name=attr(code_el, A.DISPLAY_NAME),
        title=stripped(child_text(section_el, E.TITLE)),
        effective_time=parse_datetime(child_attr(section_el, E.EFFECTIVE_TIME, attribute=A.VALUE)),
    )


class SectionParser:
    """Parses one <section> subtree."""

    async def parse(
        self,
        element: Element,
        session: ParseSession,
        owner: SectionOwner | None = None,
    ) -> SectionOutcome:
        outcome = SectionOutcome()

        if owner is None:
            if session.structured_body_id is None:
                return outcome.fail("Cannot parse section because no structured body context exists.")
            owner = BodyOwner(session.structured_body_id)

        title = stripped(child_text(element, E.TITLE)) or ""

        max_depth = session.settings.max_section_depth
        if max_depth is not None and owner.depth > max_depth:
            session.logger.warning("section_depth_exceeded", title=title, depth=owner.depth, max_depth=max_depth)
            return outcome.fail(
                f"Section '{title}' skipped: nesting depth {owner.depth} exceeds the limit of {max_depth}."
            )

        try:
            section = build_section(element, owner)
            await session.create(section)
        except Exception as e:
            session.logger.exception("section_parse_failed", title=title, error=str(e))
            return outcome.fail(f"Error parsing section '{title}': {e}")

        outcome.section_id = section.id
        outcome.record(section)

        log = session.logger.bind(section_id=section.id)
        log.debug("section_created", title=title, code=section.section_code, depth=owner.depth)

        # Payload of this section
        media = await self._run_step(
            "media", lambda: extract_observation_media(element, section.id, session), session, outcome
        )
        media_ids = media.media_ids if isinstance(media, MediaOutcome) else {}

        content = ContentExtractor(session, section.id, media_ids)
        await self._run_step("content", lambda: content.extract(element), session, outcome)
        await self._run_step("highlights", lambda: extract_highlights(element, section.id, session), session, outcome)
        await self._run_step("indexing", lambda: extract_indexing(element, section.id, session), session, outcome)

        tolerance = ToleranceExtractor(session, section.id)
        await self._run_step("tolerance", lambda: tolerance.extract(element), session, outcome)

        # Nested sections
        child_owner = ParentSectionOwner(parent_section_id=section.id, depth=owner.depth + 1)
        for sequence, child_el in enumerate(children(element, E.COMPONENT, E.SECTION), start=1):
            child_outcome = await self.parse(child_el, session, child_owner)
            outcome.merge(child_outcome)

            if child_outcome.section_id is not None:
                await self._run_step(
                    "hierarchy",
                    lambda: self._link_child(section.id, child_outcome.section_id, sequence, session),
                    session,
                    outcome,
                )

        # Products described in this section
        products = ProductExtractor(session)
        for product_el in children(element, E.SUBJECT, E.MANUFACTURED_PRODUCT):
            await self._run_step("product", lambda: products.extract(product_el, section.id), session, outcome)

        return outcome

    async def _link_child(
        self,
        parent_id: int,
        child_id: int,
        sequence: int,
        session: ParseSession,
    ) -> ParseOutcome:
        outcome = ParseOutcome()
        link = SectionHierarchy(
            parent_section_id=parent_id,
            child_section_id=child_id,
            sequence_number=sequence,
        )
        await session.create(link)
        outcome.record(link)
        return outcome

    async def _run_step(
        self,
        step: str,
        run: Callable[[], Awaitable[ParseOutcome]],
        session: ParseSession,
        outcome: SectionOutcome,
    ) -> ParseOutcome | None:
        """Run one section step, turning an exception into a single recorded error."""
        try:
            step_outcome = await run()
        except Exception as e:
            session.logger.exception("section_step_failed", step=step, section_id=outcome.section_id, error=str(e))
            outcome.fail(f"Error parsing {step} for SectionID {outcome.section_id}: {e}")
            return None

        outcome.merge(step_outcome)
        return step_outcome


class StructuredBodyParser:
    """Creates the StructuredBody and parses its top-level sections."""

    async def parse(self, element: Element, session: ParseSession) -> StructuredBodyOutcome:
        outcome = StructuredBodyOutcome()

        if session.document_id is None:
            session.logger.error("structured_body_without_document")
            return outcome.fail(MISSING_DOCUMENT_ERROR)

        try:
            body = StructuredBody(document_id=session.document_id)
            await session.create(body)
        except Exception as e:
            session.logger.exception("structured_body_parse_failed", error=str(e))
            return outcome.fail(f"Error parsing structuredBody: {e}")

        outcome.structured_body_id = body.id
        outcome.record(body)

        body_session = session.with_structured_body(body.id)
        owner = BodyOwner(body.id)

        for section_el in children(element, E.COMPONENT, E.SECTION):
            outcome.merge(await body_session.section_parser.parse(section_el, body_session, owner))

        session.logger.info(
            "structured_body_parsed",
            structured_body_id=body.id,
            sections_created=outcome.count(Section),
            errors=len(outcome.errors),
        )
        return outcome
