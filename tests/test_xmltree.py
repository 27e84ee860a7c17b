"""Tests for tolerant tree access and field parsing."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

import pytest
from lxml import etree

from splimport.ingestion.xmltree import (
    attr,
    child,
    child_attr,
    child_text,
    children,
    first_child,
    inner_xml,
    is_named,
    normalize_whitespace,
    parse_datetime,
    parse_decimal,
    parse_guid,
    parse_int,
    xsi_type,
)


@pytest.fixture
def section(spl_element):
    return spl_element(
        '<section ID="s1">'
        '<code code="34067-9" codeSystem="2.16.840.1.113883.6.1"/>'
        "<title> Indications </title>"
        "<component><section><title>Child A</title></section></component>"
        "<component><section><title>Child B</title></section></component>"
        "</section>"
    )


class TestLookups:
    def test_child_path(self, section):
        assert child_attr(section, "code", attribute="code") == "34067-9"
        assert child_text(section, "title") == " Indications "

    def test_missing_nodes_return_none(self, section):
        assert child(section, "subject", "manufacturedProduct") is None
        assert child_attr(section, "effectiveTime", attribute="value") is None
        assert attr(child(section, "nope"), "code") is None
        assert child_text(None, "title") is None

    def test_children_in_document_order(self, section):
        titles = [child_text(s, "title") for s in children(section, "component", "section")]
        assert titles == ["Child A", "Child B"]

    def test_children_of_none_is_empty(self):
        assert children(None, "component") == []

    def test_lookups_only_match_hl7_elements(self):
        foreign = etree.fromstring('<document xmlns="urn:custom"><title>T</title></document>')
        assert child(foreign, "title") is None

        hl7 = etree.fromstring('<document xmlns="urn:hl7-org:v3"><title>T</title></document>')
        assert child_text(hl7, "title") == "T"

    def test_first_child_tries_alternatives_in_order(self, spl_element):
        product = spl_element(
            "<manufacturedProduct><manufacturedMedicine><name>A</name></manufacturedMedicine>"
            "</manufacturedProduct>"
        )
        found = first_child(product, "manufacturedProduct", "manufacturedMedicine")
        assert is_named(found, "manufacturedMedicine")

    def test_is_named_uses_local_name(self, section):
        assert is_named(section, "section")
        assert not is_named(section, "document")
        assert not is_named(None, "section")

    def test_inner_xml_keeps_markup_without_namespace_noise(self, spl_element):
        paragraph = spl_element(
            '<paragraph xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
            'Take <content styleCode="bold">two</content> daily.</paragraph>'
        )
        assert inner_xml(paragraph) == 'Take <content styleCode="bold">two</content> daily.'

    def test_inner_xml_keeps_prefixed_declarations(self, spl_element):
        paragraph = spl_element(
            '<paragraph xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
            'Range <value xsi:type="IVL_PQ"/></paragraph>'
        )

        markup = inner_xml(paragraph)

        assert 'xmlns="urn:hl7-org:v3"' not in markup
        assert 'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"' in markup
        stored = etree.fromstring(f"<paragraph>{markup}</paragraph>")
        assert xsi_type(stored[0]) == "IVL_PQ"

    def test_xsi_type(self, spl_element):
        value = spl_element(
            '<value xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:type="ED"/>'
        )
        assert xsi_type(value) == "ED"

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n  b\tc ") == "a b c"
        assert normalize_whitespace(None) is None


class TestFieldParsers:
    def test_guid(self):
        assert parse_guid("8a1b2c3d-1111-2222-3333-444455556666") == UUID(
            "8a1b2c3d-1111-2222-3333-444455556666"
        )
        assert parse_guid("not-a-guid") is None
        assert parse_guid(None) is None

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("20240115", datetime(2024, 1, 15)),
            ("202401", datetime(2024, 1, 1)),
            ("2024", datetime(2024, 1, 1)),
            ("20240115093000", datetime(2024, 1, 15, 9, 30)),
            ("20240115093000-0500", datetime(2024, 1, 15, 9, 30)),
            ("2024-01-15", datetime(2024, 1, 15)),
        ],
    )
    def test_datetime_formats(self, raw, expected):
        assert parse_datetime(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "20241345", "yesterday", "2024011"])
    def test_malformed_datetime_is_none(self, raw):
        assert parse_datetime(raw) is None

    def test_int(self):
        assert parse_int(" 3 ") == 3
        assert parse_int("3.5") is None
        assert parse_int(None) is None

    def test_decimal(self):
        assert parse_decimal("10.5") == Decimal("10.5")
        assert parse_decimal("NaN") is None
        assert parse_decimal("Infinity") is None
        assert parse_decimal("ten") is None
