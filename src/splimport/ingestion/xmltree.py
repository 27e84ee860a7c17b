"""
Tolerant access to SPL element trees.

Every lookup here returns ``None`` (or an empty list) instead of raising when
a node or attribute is missing, and every lookup accepts ``None`` as its
input, so lookups compose without intermediate checks:

    code_system = attr(child(section_el, E.CODE), A.CODE_SYSTEM)
    unii = child_attr(substance_el, E.CODE, attribute=A.CODE)

The field parsers at the bottom follow the same rule: a malformed GUID, date
or number becomes ``None``, never an exception.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from lxml import etree

from splimport.ingestion.constants import HL7_NAMESPACE, XSI_NAMESPACE

# ============================================================================
# XML Namespace Handling
# ============================================================================
# SPL documents use the HL7 namespace. We need to include it in all XPath queries.

SPL_NAMESPACE = {"spl": HL7_NAMESPACE}

Element = etree._Element


def xpath(element: Element | None, path: str) -> list:
    """Run XPath with the SPL namespace; empty list for a missing element."""
    if element is None:
        return []
    return element.xpath(path, namespaces=SPL_NAMESPACE)


def _child_path(names: tuple[str, ...]) -> str:
    return "/".join(f"spl:{name}" for name in names)


def children(element: Element | None, *names: str) -> list[Element]:
    """All elements reached by following ``names`` as a child path."""
    if not names:
        return []
    return xpath(element, _child_path(names))


def child(element: Element | None, *names: str) -> Element | None:
    """First element reached by following ``names`` as a child path."""
    results = children(element, *names)
    return results[0] if results else None


def first_child(element: Element | None, *alternatives: str) -> Element | None:
    """First direct child matching any of ``alternatives``, tried in order."""
    for name in alternatives:
        found = child(element, name)
        if found is not None:
            return found
    return None


def attr(element: Element | None, name: str) -> str | None:
    if element is None:
        return None
    return element.get(name)


def child_attr(element: Element | None, *names: str, attribute: str) -> str | None:
    """Attribute of the first element at a child path."""
    return attr(child(element, *names), attribute)


def text(element: Element | None) -> str | None:
    """All text content of an element, tails excluded."""
    if element is None:
        return None
    return etree.tostring(element, method="text", encoding="unicode", with_tail=False)


def child_text(element: Element | None, *names: str) -> str | None:
    return text(child(element, *names))


def stripped(value: str | None) -> str | None:
    return value.strip() if value is not None else None


def normalize_whitespace(value: str | None) -> str | None:
    if value is None:
        return None
    return " ".join(value.split())


def local_name(element: Element) -> str:
    return etree.QName(element).localname


def is_named(element: Element | None, *names: str) -> bool:
    return element is not None and local_name(element) in names


def element_children(element: Element | None) -> list[Element]:
    """Direct element children, skipping comments and processing instructions."""
    if element is None:
        return []
    return [node for node in element if isinstance(node.tag, str)]


_NAMESPACE_DECLARATION = re.compile(r'\s+xmlns(?::([\w.-]+))?="([^"]*)"')


def _drop_unused_declarations(markup: str) -> str:
    def replace(match: re.Match) -> str:
        prefix, uri = match.groups()
        if prefix is None:
            return "" if uri == HL7_NAMESPACE else match.group(0)
        if re.search(rf"[\s</]{re.escape(prefix)}:", markup):
            return match.group(0)
        return ""

    return _NAMESPACE_DECLARATION.sub(replace, markup)


def inner_xml(element: Element | None) -> str | None:
    """
    Markup inside an element (text and child elements), trimmed.

    lxml repeats the in-scope namespace declarations on every serialized
    child. The default HL7 declaration and unused prefixed ones are removed,
    so ``<paragraph>a <content>b</content></paragraph>`` yields
    ``a <content>b</content>``. A prefix the child uses (``xsi:type``) keeps
    its declaration, so the markup parses on its own.
    """
    if element is None:
        return None
    parts = [element.text or ""]
    for node in element:
        markup = etree.tostring(node, encoding="unicode", with_tail=True)
        parts.append(_drop_unused_declarations(markup))
    return "".join(parts).strip()


def xsi_type(element: Element | None) -> str | None:
    return attr(element, f"{{{XSI_NAMESPACE}}}type")


# ============================================================================
# Field parsers
# ============================================================================

_SPL_TIMESTAMP = re.compile(r"^(\d{4,14})(?:\.\d+)?(?:[+-]\d{2,4})?$")

_TIMESTAMP_FORMATS = {
    4: "%Y",
    6: "%Y%m",
    8: "%Y%m%d",
    10: "%Y%m%d%H",
    12: "%Y%m%d%H%M",
    14: "%Y%m%d%H%M%S",
}


def parse_guid(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def parse_datetime(value: str | None) -> datetime | None:
    """
    Parse an SPL timestamp.

    SPL dates are written as YYYY, YYYYMM, YYYYMMDD or YYYYMMDDHHMMSS with an
    optional fraction and UTC offset (the offset is dropped). ISO-8601
    strings are accepted as a fallback.
    """
    if not value or not value.strip():
        return None

    raw = value.strip()
    match = _SPL_TIMESTAMP.match(raw)
    if match:
        digits = match.group(1)
        fmt = _TIMESTAMP_FORMATS.get(len(digits))
        if fmt is None:
            return None
        try:
            return datetime.strptime(digits, fmt)
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_decimal(value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None

