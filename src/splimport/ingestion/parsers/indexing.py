"""
Indexing sections: active moiety and pharmacologic class metadata.

Indexing files carry one ``subject/identifiedSubstance/identifiedSubstance``
per section. A UNII code makes the section an active moiety index whose
``asSpecializedKind`` entries reference the classes it belongs to. Any other
code system makes it a pharmacologic class definition: the class itself,
its names and its parent classes.
"""

from splimport.ingestion.constants import (
    A,
    DEFAULT_NAME_USE,
    E,
    SUBJECT_ACTIVE_MOIETY,
    SUBJECT_PHARMACOLOGIC_CLASS,
    UNII_CODE_SYSTEM,
)
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    children,
    stripped,
    text,
)
from splimport.models import (
    IdentifiedSubstance,
    PharmacologicClass,
    PharmacologicClassHierarchy,
    PharmacologicClassLink,
    PharmacologicClassName,
)


def indexed_substance(section_el: Element) -> Element | None:
    return child(section_el, E.SUBJECT, E.IDENTIFIED_SUBSTANCE, E.IDENTIFIED_SUBSTANCE)


def is_tolerance_subject(section_el: Element) -> bool:
    """Whether the section's identified substance carries tolerance specifications."""
    return child(
        section_el, E.SUBJECT, E.IDENTIFIED_SUBSTANCE, E.SUBJECT_OF, E.SUBSTANCE_SPECIFICATION
    ) is not None


def _specialized_kind_codes(substance_el: Element) -> list[Element]:
    """Class codes under asSpecializedKind that carry a code value."""
    codes = []
    for code_el in children(substance_el, E.AS_SPECIALIZED_KIND, E.GENERALIZED_MATERIAL_KIND, E.CODE):
        if attr(code_el, A.CODE):
            codes.append(code_el)
    return codes


async def _referenced_class(code_el: Element, session: ParseSession) -> PharmacologicClass:
    pharm_class = PharmacologicClass(
        identified_substance_id=None,
        class_code=attr(code_el, A.CODE),
        class_code_system=attr(code_el, A.CODE_SYSTEM),
        class_display_name=attr(code_el, A.DISPLAY_NAME),
    )
    return await session.create(pharm_class)


async def extract_indexing(section_el: Element, section_id: int, session: ParseSession) -> ParseOutcome:
    outcome = ParseOutcome()

    substance_el = indexed_substance(section_el)
    if substance_el is None or is_tolerance_subject(section_el):
        return outcome

    code_el = child(substance_el, E.CODE)
    identifier = attr(code_el, A.CODE)
    system_oid = attr(code_el, A.CODE_SYSTEM)
    if not identifier or not system_oid:
        session.logger.debug("indexing_subject_without_code", section_id=section_id)
        return outcome

    is_moiety = system_oid == UNII_CODE_SYSTEM

    substance = IdentifiedSubstance(
        section_id=section_id,
        subject_type=SUBJECT_ACTIVE_MOIETY if is_moiety else SUBJECT_PHARMACOLOGIC_CLASS,
        substance_identifier_value=identifier,
        substance_identifier_system_oid=system_oid,
        is_definition=not is_moiety,
    )
    await session.create(substance)
    outcome.record(substance)

    if is_moiety:
        for class_code_el in _specialized_kind_codes(substance_el):
            pharm_class = await _referenced_class(class_code_el, session)
            outcome.record(pharm_class)

            link = PharmacologicClassLink(
                active_moiety_substance_id=substance.id,
                pharmacologic_class_id=pharm_class.id,
            )
            await session.create(link)
            outcome.record(link)
        return outcome

    defined_class = PharmacologicClass(
        identified_substance_id=substance.id,
        class_code=identifier,
        class_code_system=system_oid,
        class_display_name=attr(code_el, A.DISPLAY_NAME),
    )
    await session.create(defined_class)
    outcome.record(defined_class)

    for name_el in children(substance_el, E.NAME):
        name_value = stripped(text(name_el))
        if not name_value:
            continue
        class_name = PharmacologicClassName(
            pharmacologic_class_id=defined_class.id,
            name_value=name_value,
            name_use=attr(name_el, A.USE) or DEFAULT_NAME_USE,
        )
        await session.create(class_name)
        outcome.record(class_name)

    for parent_code_el in _specialized_kind_codes(substance_el):
        parent_class = await _referenced_class(parent_code_el, session)
        outcome.record(parent_class)

        hierarchy = PharmacologicClassHierarchy(
            child_pharmacologic_class_id=defined_class.id,
            parent_pharmacologic_class_id=parent_class.id,
        )
        await session.create(hierarchy)
        outcome.record(hierarchy)

    session.logger.debug(
        "pharmacologic_class_defined",
        section_id=section_id,
        class_code=identifier,
    )
    return outcome
