"""
Product and ingredient extraction.

SPL files from different eras name the same things differently:

- the product payload is ``manufacturedProduct/manufacturedProduct`` in most
  labels but ``manufacturedProduct/manufacturedMedicine`` in older ones;
- an ingredient is ``ingredient`` (class given by ``@classCode``) or one of
  the typed ``activeIngredient`` / ``inactiveIngredient`` tags;
- the substance is ``ingredientSubstance`` or the matching typed variant.

All variants resolve to the same records.

A product also carries its item codes (``code``) and a packaging tree:
each ``asContent`` is one package level whose ``containerPackagedProduct``
may nest further ``asContent`` levels.
"""

from splimport.ingestion.constants import IDENTIFIER_TYPES, PACKAGE_CODE_SYSTEMS, A, E
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    child_text,
    children,
    first_child,
    is_named,
    parse_decimal,
    stripped,
)
from splimport.models import (
    ActiveMoiety,
    Ingredient,
    IngredientSubstance,
    PackageIdentifier,
    PackagingHierarchy,
    PackagingLevel,
    Product,
    ProductIdentifier,
)

PRODUCT_TAGS = (E.MANUFACTURED_MEDICINE, E.MANUFACTURED_PRODUCT)

SUBSTANCE_TAGS = (
    E.INGREDIENT_SUBSTANCE,
    E.ACTIVE_INGREDIENT_SUBSTANCE,
    E.INACTIVE_INGREDIENT_SUBSTANCE,
)

MISSING_PRODUCT_ERROR = (
    "Could not find <manufacturedMedicine> or <manufacturedProduct> element for product parsing."
)


def resolve_product_element(element: Element | None) -> Element | None:
    """
    The element holding product name, form code and ingredients.

    Tries the nested payload first (either wrapper name), then the element
    itself when it already carries one of the accepted names.
    """
    nested = first_child(element, *PRODUCT_TAGS)
    if nested is not None:
        return nested
    if is_named(element, *PRODUCT_TAGS):
        return element
    return None


def _quantity(quantity_el: Element | None, part: str) -> tuple:
    part_el = child(quantity_el, part)
    return parse_decimal(attr(part_el, A.VALUE)), attr(part_el, A.UNIT)


def _moiety_elements(substance_el: Element) -> list[Element]:
    """
    Active moieties of a substance.

    Usually ``activeMoiety/activeMoiety``; a container that carries the code
    or name itself counts as the moiety.
    """
    moieties = []
    for container in children(substance_el, E.ACTIVE_MOIETY):
        nested = children(container, E.ACTIVE_MOIETY)
        if nested:
            moieties.extend(nested)
        elif child(container, E.CODE) is not None or child(container, E.NAME) is not None:
            moieties.append(container)
    return moieties


def code_pair(code_el: Element | None) -> tuple[str | None, str | None]:
    """``(code, codeSystem)`` of a code element; both None unless both are set."""
    value = stripped(attr(code_el, A.CODE))
    system = stripped(attr(code_el, A.CODE_SYSTEM))
    if not value or not system:
        return None, None
    return value, system


def identifier_type(code_system: str | None, package: bool = False) -> str | None:
    """
    Identifier type for an item code system.

    ``"NDC"`` for an NDC product code, ``"NDCPackage"`` for an NDC package
    code. Unknown systems, and package codes in systems that do not label
    packages, have no type.
    """
    base = IDENTIFIER_TYPES.get(code_system)
    if base is None:
        return None
    if not package:
        return base
    if code_system not in PACKAGE_CODE_SYSTEMS:
        return None
    return f"{base.replace(' ', '')}Package"


class ProductExtractor:
    """Persists a Product and everything nested in it for one owning section."""

    def __init__(self, session: ParseSession):
        self.session = session
        self.default_class_codes = {
            E.INGREDIENT: None,
            E.ACTIVE_INGREDIENT: session.settings.active_ingredient_class_code,
            E.INACTIVE_INGREDIENT: session.settings.inactive_ingredient_class_code,
        }

    async def extract(self, element: Element, section_id: int) -> ParseOutcome:
        outcome = ParseOutcome()

        product_el = resolve_product_element(element)
        if product_el is None:
            self.session.logger.warning("product_element_not_found", section_id=section_id)
            return outcome.fail(MISSING_PRODUCT_ERROR)

        form_code_el = child(product_el, E.FORM_CODE)
        product = Product(
            section_id=section_id,
            product_name=stripped(child_text(product_el, E.NAME)),
            form_code=attr(form_code_el, A.CODE),
            form_code_system=attr(form_code_el, A.CODE_SYSTEM),
            form_display_name=attr(form_code_el, A.DISPLAY_NAME),
        )
        await self.session.create(product)
        outcome.record(product)

        self.session.logger.info(
            "product_created",
            product_id=product.id,
            product_name=product.product_name,
            section_id=section_id,
        )

        outcome.merge(await self.extract_identifiers(product_el, product.id))

        for tag, default_class_code in self.default_class_codes.items():
            for ingredient_el in children(product_el, tag):
                outcome.merge(await self.extract_ingredient(ingredient_el, product.id, default_class_code))

        for as_content_el in children(product_el, E.AS_CONTENT):
            outcome.merge(await self.extract_packaging(as_content_el, product.id))

        return outcome

    async def extract_identifiers(self, product_el: Element, product_id: int) -> ParseOutcome:
        """ProductIdentifier rows for the product's own ``code`` elements."""
        outcome = ParseOutcome()

        try:
            for code_el in children(product_el, E.CODE):
                value, system = code_pair(code_el)
                if value is None:
                    continue

                identifier = ProductIdentifier(
                    product_id=product_id,
                    identifier_value=value,
                    identifier_system_oid=system,
                    identifier_type=identifier_type(system),
                )
                await self.session.create(identifier)
                outcome.record(identifier)

                self.session.logger.info(
                    "product_identifier_created",
                    product_id=product_id,
                    identifier_value=value,
                    identifier_type=identifier.identifier_type,
                )
        except Exception as e:
            self.session.logger.exception("product_identifier_parse_failed", product_id=product_id, error=str(e))
            outcome.fail(f"Error parsing product identifiers for ProductID {product_id}: {e}")

        return outcome

    async def extract_packaging(
        self,
        as_content_el: Element,
        product_id: int,
        outer_level_id: int | None = None,
        sequence_number: int | None = None,
    ) -> ParseOutcome:
        """
        One packaging level and, recursively, the levels nested inside it.

        The outermost level is linked to the product; inner levels are linked
        to their outer level through PackagingHierarchy. A level that fails is
        recorded as one error and its nested levels are not visited; its
        siblings are unaffected.
        """
        outcome = ParseOutcome()
        container_el = child(as_content_el, E.CONTAINER_PACKAGED_PRODUCT)

        try:
            quantity_el = child(as_content_el, E.QUANTITY)
            numerator, numerator_unit = _quantity(quantity_el, E.NUMERATOR)
            denominator, _ = _quantity(quantity_el, E.DENOMINATOR)
            form_code_el = child(container_el, E.FORM_CODE)

            level = PackagingLevel(
                product_id=product_id if outer_level_id is None else None,
                quantity_numerator=numerator,
                quantity_numerator_unit=numerator_unit,
                quantity_denominator=denominator,
                package_form_code=attr(form_code_el, A.CODE),
                package_form_code_system=attr(form_code_el, A.CODE_SYSTEM),
                package_form_display_name=attr(form_code_el, A.DISPLAY_NAME),
            )
            await self.session.create(level)
            outcome.record(level)

            if outer_level_id is not None:
                link = PackagingHierarchy(
                    outer_packaging_level_id=outer_level_id,
                    inner_packaging_level_id=level.id,
                    sequence_number=sequence_number,
                )
                await self.session.create(link)
                outcome.record(link)

            value, system = code_pair(child(container_el, E.CODE))
            if value is not None:
                package_identifier = PackageIdentifier(
                    packaging_level_id=level.id,
                    identifier_value=value,
                    identifier_system_oid=system,
                    identifier_type=identifier_type(system, package=True),
                )
                await self.session.create(package_identifier)
                outcome.record(package_identifier)

            self.session.logger.info(
                "packaging_level_created",
                packaging_level_id=level.id,
                product_id=product_id,
                outer_packaging_level_id=outer_level_id,
                package_code=value,
            )
        except Exception as e:
            self.session.logger.exception("packaging_parse_failed", product_id=product_id, error=str(e))
            return outcome.fail(f"Error parsing packaging for ProductID {product_id}: {e}")

        for sequence, nested_el in enumerate(children(container_el, E.AS_CONTENT), start=1):
            outcome.merge(await self.extract_packaging(nested_el, product_id, level.id, sequence))

        return outcome

    async def extract_ingredient(
        self,
        ingredient_el: Element,
        product_id: int,
        default_class_code: str | None,
    ) -> ParseOutcome:
        """One ingredient; any failure is recorded and does not affect siblings."""
        outcome = ParseOutcome()

        substance_el = first_child(ingredient_el, *SUBSTANCE_TAGS)
        if substance_el is None:
            self.session.logger.warning("ingredient_substance_not_found", product_id=product_id)
            return outcome.fail(f"Could not parse ingredient substance for ProductID {product_id}.")

        try:
            substance = IngredientSubstance(
                unii=attr(child(substance_el, E.CODE), A.CODE),
                substance_name=stripped(child_text(substance_el, E.NAME)),
            )
            await self.session.create(substance)
            outcome.record(substance)

            quantity_el = child(ingredient_el, E.QUANTITY)
            numerator, numerator_unit = _quantity(quantity_el, E.NUMERATOR)
            denominator, denominator_unit = _quantity(quantity_el, E.DENOMINATOR)

            ingredient = Ingredient(
                product_id=product_id,
                ingredient_substance_id=substance.id,
                class_code=attr(ingredient_el, A.CLASS_CODE) or default_class_code,
                quantity_numerator=numerator,
                quantity_numerator_unit=numerator_unit,
                quantity_denominator=denominator,
                quantity_denominator_unit=denominator_unit,
            )
            await self.session.create(ingredient)
            outcome.record(ingredient)

            for moiety_el in _moiety_elements(substance_el):
                moiety = ActiveMoiety(
                    ingredient_substance_id=substance.id,
                    moiety_unii=attr(child(moiety_el, E.CODE), A.CODE),
                    moiety_name=stripped(child_text(moiety_el, E.NAME)),
                )
                await self.session.create(moiety)
                outcome.record(moiety)

        except Exception as e:
            self.session.logger.exception("ingredient_parse_failed", product_id=product_id, error=str(e))
            outcome.fail(f"Error parsing ingredient for ProductID {product_id}: {e}")

        return outcome
