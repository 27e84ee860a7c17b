"""Tests for product and ingredient extraction."""

import asyncio
from decimal import Decimal

import pytest

from splimport.ingestion.parsers import ProductExtractor
from splimport.ingestion.parsers.product import MISSING_PRODUCT_ERROR, identifier_type, resolve_product_element
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

PRODUCT_BODY = (
    "<name> Testdrugium </name>"
    '<formCode code="C42998" codeSystem="2.16.840.1.113883.3.26.1.1" displayName="TABLET"/>'
)


def _extract(element, session, section_id=7):
    return asyncio.run(ProductExtractor(session).extract(element, section_id))


class TestProductWrapper:
    @pytest.mark.parametrize(
        "markup",
        [
            f"<manufacturedProduct><manufacturedProduct>{PRODUCT_BODY}</manufacturedProduct></manufacturedProduct>",
            f"<manufacturedProduct><manufacturedMedicine>{PRODUCT_BODY}</manufacturedMedicine></manufacturedProduct>",
            f"<manufacturedProduct>{PRODUCT_BODY}</manufacturedProduct>",
            f"<manufacturedMedicine>{PRODUCT_BODY}</manufacturedMedicine>",
        ],
        ids=["nested-product", "nested-medicine", "bare-product", "bare-medicine"],
    )
    def test_wrapper_variants_extract_the_same_product(self, markup, spl_element, make_session, store):
        outcome = _extract(spl_element(markup), make_session())

        assert outcome.success
        product = store.rows(Product)[0]
        assert product.section_id == 7
        assert product.product_name == "Testdrugium"
        assert product.form_code == "C42998"
        assert product.form_code_system == "2.16.840.1.113883.3.26.1.1"
        assert product.form_display_name == "TABLET"

    def test_unrecognized_element_is_an_error(self, spl_element, make_session, store):
        outcome = _extract(spl_element(f"<product>{PRODUCT_BODY}</product>"), make_session())

        assert outcome.errors == [MISSING_PRODUCT_ERROR]
        assert store.count(Product) == 0

    def test_resolve_prefers_nested_payload(self, spl_element):
        outer = spl_element(
            "<manufacturedProduct><manufacturedMedicine><name>Inner</name></manufacturedMedicine>"
            "</manufacturedProduct>"
        )
        assert resolve_product_element(outer) is outer[0]


class TestIngredients:
    def _product(self, spl_element, ingredients):
        return spl_element(f"<manufacturedProduct>{PRODUCT_BODY}{ingredients}</manufacturedProduct>")

    def test_active_ingredient_defaults_to_active_class(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<activeIngredient><activeIngredientSubstance>"
            '<code code="ABC123XYZ0"/><name>TESTDRUGIUM HCL</name>'
            "</activeIngredientSubstance></activeIngredient>",
        )

        _extract(product, make_session())

        ingredient = store.rows(Ingredient)[0]
        assert ingredient.class_code == "ACTIB"
        substance = store.rows(IngredientSubstance)[0]
        assert substance.unii == "ABC123XYZ0"
        assert substance.substance_name == "TESTDRUGIUM HCL"
        assert ingredient.ingredient_substance_id == substance.id
        assert ingredient.product_id == store.rows(Product)[0].id

    def test_inactive_ingredient_defaults_to_inactive_class(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<inactiveIngredient><inactiveIngredientSubstance>"
            '<code code="EWQ57Q8I5X"/><name>LACTOSE</name>'
            "</inactiveIngredientSubstance></inactiveIngredient>",
        )

        _extract(product, make_session())

        assert store.rows(Ingredient)[0].class_code == "IACT"

    def test_explicit_class_code_wins(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            '<activeIngredient classCode="ACTIM"><activeIngredientSubstance><name>X</name>'
            "</activeIngredientSubstance></activeIngredient>"
            '<ingredient classCode="ACTIR"><ingredientSubstance><name>Y</name></ingredientSubstance></ingredient>',
        )

        _extract(product, make_session())

        assert sorted(i.class_code for i in store.rows(Ingredient)) == ["ACTIM", "ACTIR"]

    def test_generic_ingredient_without_class_code(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<ingredient><ingredientSubstance><name>Z</name></ingredientSubstance></ingredient>",
        )

        _extract(product, make_session())

        assert store.rows(Ingredient)[0].class_code is None

    def test_quantity(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<activeIngredient>"
            '<quantity><numerator value="12.5" unit="mg"/><denominator value="5" unit="mL"/></quantity>'
            "<activeIngredientSubstance><name>X</name></activeIngredientSubstance>"
            "</activeIngredient>",
        )

        _extract(product, make_session())

        ingredient = store.rows(Ingredient)[0]
        assert ingredient.quantity_numerator == Decimal("12.5")
        assert ingredient.quantity_numerator_unit == "mg"
        assert ingredient.quantity_denominator == Decimal("5")
        assert ingredient.quantity_denominator_unit == "mL"

    def test_missing_quantity_is_not_an_error(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<activeIngredient><activeIngredientSubstance><name>X</name>"
            "</activeIngredientSubstance></activeIngredient>",
        )

        outcome = _extract(product, make_session())

        assert outcome.success
        ingredient = store.rows(Ingredient)[0]
        assert ingredient.quantity_numerator is None
        assert ingredient.quantity_denominator_unit is None

    def test_missing_substance_is_local_error(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            '<activeIngredient><quantity><numerator value="1"/></quantity></activeIngredient>'
            "<inactiveIngredient><inactiveIngredientSubstance><name>OK</name>"
            "</inactiveIngredientSubstance></inactiveIngredient>",
        )

        outcome = _extract(product, make_session())

        product_id = store.rows(Product)[0].id
        assert outcome.errors == [f"Could not parse ingredient substance for ProductID {product_id}."]
        assert [s.substance_name for s in store.rows(IngredientSubstance)] == ["OK"]
        assert store.count(Ingredient) == 1

    def test_active_moieties(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<activeIngredient><activeIngredientSubstance><name>COMBO</name>"
            "<activeMoiety>"
            '<activeMoiety><code code="M1"/><name>FIRST</name></activeMoiety>'
            '<activeMoiety><code code="M2"/><name>SECOND</name></activeMoiety>'
            "</activeMoiety>"
            '<activeMoiety><code code="M3"/><name> THIRD </name></activeMoiety>'
            "</activeIngredientSubstance></activeIngredient>",
        )

        outcome = _extract(product, make_session())

        substance_id = store.rows(IngredientSubstance)[0].id
        moieties = store.rows(ActiveMoiety)
        assert [(m.moiety_unii, m.moiety_name) for m in moieties] == [
            ("M1", "FIRST"), ("M2", "SECOND"), ("M3", "THIRD"),
        ]
        assert {m.ingredient_substance_id for m in moieties} == {substance_id}
        assert outcome.count(ActiveMoiety) == 3

    def test_substance_without_moiety(self, spl_element, make_session, store):
        product = self._product(
            spl_element,
            "<inactiveIngredient><inactiveIngredientSubstance><name>WATER</name>"
            "</inactiveIngredientSubstance></inactiveIngredient>",
        )

        _extract(product, make_session())

        assert store.count(ActiveMoiety) == 0


NDC = "2.16.840.1.113883.6.69"


def _package(code, form, inner="", quantity="1", unit="1"):
    return (
        f'<asContent><quantity><numerator value="{quantity}" unit="{unit}"/>'
        '<denominator value="1"/></quantity>'
        f'<containerPackagedProduct><code code="{code}" codeSystem="{NDC}"/>'
        f'<formCode code="{form}" codeSystem="2.16.840.1.113883.3.26.1.1" displayName="{form}"/>'
        f"{inner}</containerPackagedProduct></asContent>"
    )


class TestProductIdentifiers:
    def test_product_codes(self, spl_element, make_session, store):
        product = spl_element(
            "<manufacturedProduct>"
            f'<code code="50090-1234" codeSystem="{NDC}"/>'
            '<code code="00312345678906" codeSystem="1.3.160"/>'
            '<code code="X1" codeSystem="9.9.9"/>'
            '<code codeSystem="1.3.160"/>'
            f"{PRODUCT_BODY}</manufacturedProduct>"
        )

        outcome = _extract(product, make_session())

        assert outcome.success
        product_id = store.rows(Product)[0].id
        identifiers = store.rows(ProductIdentifier)
        assert [(i.identifier_value, i.identifier_type) for i in identifiers] == [
            ("50090-1234", "NDC"),
            ("00312345678906", "GS1"),
            ("X1", None),
        ]
        assert {i.product_id for i in identifiers} == {product_id}
        assert identifiers[0].identifier_system_oid == NDC

    def test_identifier_types(self):
        assert identifier_type(NDC) == "NDC"
        assert identifier_type(NDC, package=True) == "NDCPackage"
        assert identifier_type("2.16.840.1.113883.6.18", package=True) == "ISBT128Package"
        assert identifier_type("2.16.840.1.113883.3.9848") == "CLN"
        assert identifier_type("2.16.840.1.113883.3.9848", package=True) is None
        assert identifier_type(None) is None


class TestPackaging:
    def test_nested_levels(self, spl_element, make_session, store):
        inner = _package("50090-1234-1", "BLISTER PACK", quantity="10", unit="TABLET") + _package(
            "50090-1234-2", "BLISTER PACK", quantity="5", unit="TABLET"
        )
        product = spl_element(
            f"<manufacturedProduct>{PRODUCT_BODY}"
            f"{_package('50090-1234-3', 'CARTON', inner=inner, quantity='3', unit='1')}"
            "</manufacturedProduct>"
        )

        outcome = _extract(product, make_session())

        assert outcome.success
        product_id = store.rows(Product)[0].id
        carton, first, second = store.rows(PackagingLevel)
        assert carton.product_id == product_id
        assert carton.package_form_code == "CARTON"
        assert carton.quantity_numerator == Decimal("3")
        assert carton.quantity_denominator == Decimal("1")
        assert first.product_id is None and second.product_id is None
        assert first.quantity_numerator == Decimal("10")
        assert first.quantity_numerator_unit == "TABLET"

        links = [
            (h.outer_packaging_level_id, h.inner_packaging_level_id, h.sequence_number)
            for h in store.rows(PackagingHierarchy)
        ]
        assert links == [(carton.id, first.id, 1), (carton.id, second.id, 2)]

        identifiers = {i.packaging_level_id: i for i in store.rows(PackageIdentifier)}
        assert identifiers[carton.id].identifier_value == "50090-1234-3"
        assert identifiers[first.id].identifier_type == "NDCPackage"
        assert outcome.count(PackagingLevel) == 3

    def test_package_without_code_or_container(self, spl_element, make_session, store):
        product = spl_element(
            f"<manufacturedProduct>{PRODUCT_BODY}"
            '<asContent><quantity><numerator value="30" unit="mL"/></quantity></asContent>'
            "</manufacturedProduct>"
        )

        outcome = _extract(product, make_session())

        assert outcome.success
        level = store.rows(PackagingLevel)[0]
        assert level.quantity_numerator == Decimal("30")
        assert level.package_form_code is None
        assert store.count(PackageIdentifier) == 0

    def test_failed_level_is_local_error(self, spl_element, make_session, store, monkeypatch):
        product = spl_element(
            f"<manufacturedProduct>{PRODUCT_BODY}"
            f"{_package('1-1', 'BOX', inner=_package('1-2', 'BOTTLE'))}"
            f"{_package('2-1', 'CARTON')}"
            "<activeIngredient><activeIngredientSubstance><name>X</name>"
            "</activeIngredientSubstance></activeIngredient>"
            "</manufacturedProduct>"
        )
        original_add = store.add

        def fail_box(entity):
            if isinstance(entity, PackagingLevel) and entity.package_form_code == "BOX":
                raise RuntimeError("disk full")
            return original_add(entity)

        monkeypatch.setattr(store, "add", fail_box)

        outcome = _extract(product, make_session())

        product_id = store.rows(Product)[0].id
        assert outcome.errors == [f"Error parsing packaging for ProductID {product_id}: disk full"]
        assert [level.package_form_code for level in store.rows(PackagingLevel)] == ["CARTON"]
        assert store.count(PackagingHierarchy) == 0
        assert store.count(Ingredient) == 1
