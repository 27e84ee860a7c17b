"""Authoring organization (author/assignedEntity/representedOrganization)."""

from splimport.ingestion.constants import A, E
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import Element, child, child_attr, child_text, stripped
from splimport.models import DocumentAuthor, Organization


class AuthorParser:
    """
    Persists the labeler Organization and links it to the Document.

    A missing organization sub-tree is a no-op. Any other failure is recorded
    as one recoverable error.
    """

    async def parse(self, element: Element, session: ParseSession) -> ParseOutcome:
        outcome = ParseOutcome()

        organization_el = child(element, E.ASSIGNED_ENTITY, E.REPRESENTED_ORGANIZATION)
        if organization_el is None:
            session.logger.debug("author_without_organization")
            return outcome

        if session.document_id is None:
            return outcome.fail("Cannot parse author because no document context exists.")

        try:
            confidentiality = child_attr(organization_el, E.CONFIDENTIALITY_CODE, attribute=A.CODE)
            organization = Organization(
                organization_name=stripped(child_text(organization_el, E.NAME)),
                is_confidential=confidentiality == session.settings.confidentiality_code,
            )
            await session.create(organization)
            outcome.record(organization)

            session.logger.info(
                "organization_created",
                organization_id=organization.id,
                organization_name=organization.organization_name,
            )

            author = DocumentAuthor(
                document_id=session.document_id,
                organization_id=organization.id,
                author_type=session.settings.default_author_type,
            )
            await session.create(author)
            outcome.record(author)

        except Exception as e:
            session.logger.exception("author_parse_failed", error=str(e))
            outcome.fail(f"Error parsing author: {e}")

        return outcome
