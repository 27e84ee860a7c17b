"""
Pesticide tolerance specifications.

Layout handled (all under the section's subject):

    identifiedSubstance/
        identifiedSubstance/code            -> IdentifiedSubstance
        subjectOf/substanceSpecification/
            code                            -> SubstanceSpecification
            component/observation/
                code                        -> enforcement method
                analyte/identifiedSubstance/identifiedSubstance/code -> Analyte
                referenceRange/observationCriterion/
                    value/high/@value @unit -> ObservationCriterion
                    subject/presentSubstance/presentSubstance -> Commodity
                    subjectOf/approval/     -> ApplicationType, expiration, note
"""

from splimport.ingestion.constants import (
    A,
    E,
    SUBJECT_ACTIVE_MOIETY,
    SUBJECT_ANALYTE,
    SUBJECT_SUBSTANCE_SPECIFICATION,
    UNII_CODE_SYSTEM,
)
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    child_attr,
    child_text,
    children,
    normalize_whitespace,
    parse_datetime,
    parse_decimal,
    stripped,
)
from splimport.models import (
    Analyte,
    ApplicationType,
    Commodity,
    IdentifiedSubstance,
    ObservationCriterion,
    SubstanceSpecification,
)


class ToleranceExtractor:
    """
    Extracts the tolerance specifications of one section.

    The section's IdentifiedSubstance is created lazily, once, the first time
    a specification with a code is found.
    """

    def __init__(self, session: ParseSession, section_id: int):
        self.session = session
        self.section_id = section_id
        self.logger = session.logger.bind(section_id=section_id)
        self._substance: IdentifiedSubstance | None = None

    async def extract(self, section_el: Element) -> ParseOutcome:
        outcome = ParseOutcome()

        subject_el = child(section_el, E.SUBJECT, E.IDENTIFIED_SUBSTANCE)
        for spec_el in children(subject_el, E.SUBJECT_OF, E.SUBSTANCE_SPECIFICATION):
            spec_code_el = child(spec_el, E.CODE)
            if not attr(spec_code_el, A.CODE):
                self.logger.warning("substance_specification_without_code")
                continue

            substance = await self._identified_substance(subject_el, outcome)
            if substance is None:
                self.logger.warning("tolerance_subject_without_code")
                return outcome

            observation_el = child(spec_el, E.COMPONENT, E.OBSERVATION)
            method_code_el = child(observation_el, E.CODE)

            spec = SubstanceSpecification(
                identified_substance_id=substance.id,
                spec_code=attr(spec_code_el, A.CODE),
                spec_code_system=attr(spec_code_el, A.CODE_SYSTEM),
                enforcement_method_code=attr(method_code_el, A.CODE),
                enforcement_method_code_system=attr(method_code_el, A.CODE_SYSTEM),
                enforcement_method_display_name=attr(method_code_el, A.DISPLAY_NAME),
            )
            await self.session.create(spec)
            outcome.record(spec)

            for observation in children(spec_el, E.COMPONENT, E.OBSERVATION):
                outcome.merge(await self._analytes(observation, spec.id))
                outcome.merge(await self._criteria(observation, spec.id))

        return outcome

    async def _identified_substance(
        self,
        subject_el: Element,
        outcome: ParseOutcome,
    ) -> IdentifiedSubstance | None:
        if self._substance is not None:
            return self._substance

        code_el = child(subject_el, E.IDENTIFIED_SUBSTANCE, E.CODE)
        identifier = attr(code_el, A.CODE)
        system_oid = attr(code_el, A.CODE_SYSTEM)
        if not identifier or not system_oid:
            return None

        substance = IdentifiedSubstance(
            section_id=self.section_id,
            subject_type=(
                SUBJECT_ACTIVE_MOIETY if system_oid == UNII_CODE_SYSTEM
                else SUBJECT_SUBSTANCE_SPECIFICATION
            ),
            substance_identifier_value=identifier,
            substance_identifier_system_oid=system_oid,
            is_definition=False,
        )
        await self.session.create(substance)
        outcome.record(substance)
        self._substance = substance
        return substance

    async def _analytes(self, observation_el: Element, spec_id: int) -> ParseOutcome:
        outcome = ParseOutcome()

        for analyte_el in children(observation_el, E.ANALYTE, E.IDENTIFIED_SUBSTANCE, E.IDENTIFIED_SUBSTANCE):
            code_el = child(analyte_el, E.CODE)
            identifier = attr(code_el, A.CODE)
            if not identifier:
                continue

            analyte_substance = IdentifiedSubstance(
                section_id=self.section_id,
                subject_type=SUBJECT_ANALYTE,
                substance_identifier_value=identifier,
                substance_identifier_system_oid=attr(code_el, A.CODE_SYSTEM),
                is_definition=False,
            )
            await self.session.create(analyte_substance)
            outcome.record(analyte_substance)

            analyte = Analyte(
                substance_specification_id=spec_id,
                analyte_substance_id=analyte_substance.id,
            )
            await self.session.create(analyte)
            outcome.record(analyte)

        return outcome

    async def _criteria(self, observation_el: Element, spec_id: int) -> ParseOutcome:
        outcome = ParseOutcome()

        for criterion_el in children(observation_el, E.REFERENCE_RANGE, E.OBSERVATION_CRITERION):
            high_el = child(criterion_el, E.VALUE, E.HIGH)
            high_value = parse_decimal(attr(high_el, A.VALUE))
            if high_value is None:
                self.logger.warning("observation_criterion_without_tolerance_value")
                continue

            commodity = await self._commodity(criterion_el, outcome)
            application_type = await self._application_type(criterion_el, outcome)
            approval_el = child(criterion_el, E.SUBJECT_OF, E.APPROVAL)

            criterion = ObservationCriterion(
                substance_specification_id=spec_id,
                tolerance_high_value=high_value,
                tolerance_high_unit=attr(high_el, A.UNIT),
                commodity_id=commodity.id if commodity else None,
                application_type_id=application_type.id if application_type else None,
                expiration_date=parse_datetime(
                    child_attr(approval_el, E.EFFECTIVE_TIME, E.HIGH, attribute=A.VALUE)
                ),
                text_note=normalize_whitespace(child_text(approval_el, E.TEXT)) or None,
            )
            await self.session.create(criterion)
            outcome.record(criterion)

        return outcome

    async def _commodity(self, criterion_el: Element, outcome: ParseOutcome) -> Commodity | None:
        commodity_el = child(criterion_el, E.SUBJECT, E.PRESENT_SUBSTANCE, E.PRESENT_SUBSTANCE)
        code_el = child(commodity_el, E.CODE)
        if not attr(code_el, A.CODE):
            return None

        commodity = Commodity(
            commodity_code=attr(code_el, A.CODE),
            commodity_code_system=attr(code_el, A.CODE_SYSTEM),
            commodity_display_name=attr(code_el, A.DISPLAY_NAME),
            commodity_name=stripped(child_text(commodity_el, E.NAME)),
        )
        await self.session.create(commodity)
        outcome.record(commodity)
        return commodity

    async def _application_type(self, criterion_el: Element, outcome: ParseOutcome) -> ApplicationType | None:
        code_el = child(criterion_el, E.SUBJECT_OF, E.APPROVAL, E.CODE)
        if not attr(code_el, A.CODE):
            return None

        application_type = ApplicationType(
            app_type_code=attr(code_el, A.CODE),
            app_type_code_system=attr(code_el, A.CODE_SYSTEM),
            app_type_display_name=attr(code_el, A.DISPLAY_NAME),
        )
        await self.session.create(application_type)
        outcome.record(application_type)
        return application_type
