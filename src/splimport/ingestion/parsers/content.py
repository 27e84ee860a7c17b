"""
Section narrative content: paragraphs, lists, tables, excerpts and images.

The content of ``<text>`` (and of a section-level ``<excerpt>``) is stored as
a tree of SectionTextContent rows. Only a fixed set of block tags become rows;
any other element is treated as a wrapper and searched through. Sequence
numbers are 1-based and restart for the children of every block.

List and table blocks store their items, rows and cells in dedicated tables
and are not searched for nested blocks. Images referenced inside a block are
linked to the innermost block that contains them.
"""

import copy

from splimport.ingestion.constants import A, CONTENT_BLOCK_TAGS, E, TABLE_ROW_GROUPS
from splimport.ingestion.parsers.media import link_rendered_media, render_elements
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    children,
    element_children,
    inner_xml,
    is_named,
    local_name,
    normalize_whitespace,
    parse_int,
    stripped,
    text,
    xpath,
)
from splimport.models import (
    SectionExcerptHighlight,
    SectionTextContent,
    TextList,
    TextListItem,
    TextTable,
    TextTableCell,
    TextTableRow,
)

# Blocks whose payload lives in their own tables
_CONTAINER_TAGS = (E.LIST, E.TABLE)


def content_blocks(parent: Element | None, include_media: bool = True) -> list[Element]:
    """
    Content blocks under ``parent`` in document order.

    Block elements are returned without descending into them; other elements
    are searched through. ``highlight`` blocks are dropped since highlights
    are stored separately. With ``include_media=False`` nested
    ``renderMultimedia`` blocks are dropped too.
    """
    blocks = []
    for element in element_children(parent):
        name = local_name(element)
        if name in CONTENT_BLOCK_TAGS:
            if name == E.HIGHLIGHT:
                continue
            if name == E.RENDER_MULTIMEDIA and not include_media:
                continue
            blocks.append(element)
        else:
            blocks.extend(content_blocks(element, include_media))
    return blocks


def content_type(block: Element) -> str:
    name = local_name(block)
    return name[:1].upper() + name[1:]


def _inline_render_elements(block: Element, nested: list[Element]) -> list[Element]:
    """``renderMultimedia`` descendants of ``block`` not owned by a nested block."""
    owned_by_nested = set()
    for nested_block in nested:
        owned_by_nested.update(render_elements(nested_block))
    return [el for el in render_elements(block) if el not in owned_by_nested]


def _item_xml(item_el: Element) -> str | None:
    """Inner markup of a list item with its caption removed."""
    clone = copy.deepcopy(item_el)
    for caption in children(clone, E.CAPTION):
        # lxml drops the tail with the element; keep the text that follows
        tail = caption.tail or ""
        previous = caption.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            clone.text = (clone.text or "") + tail
        clone.remove(caption)
    return inner_xml(clone) or None


class ContentExtractor:
    """Builds the SectionTextContent tree for one section."""

    def __init__(self, session: ParseSession, section_id: int, media_ids: dict[str, int]):
        self.session = session
        self.section_id = section_id
        self.media_ids = media_ids

    async def extract(self, section_el: Element) -> ParseOutcome:
        outcome = ParseOutcome()

        for container in (child(section_el, E.TEXT), child(section_el, E.EXCERPT)):
            if container is not None:
                outcome.merge(await self.extract_blocks(content_blocks(container)))

        return outcome

    async def extract_blocks(
        self,
        blocks: list[Element],
        parent_id: int | None = None,
    ) -> ParseOutcome:
        outcome = ParseOutcome()
        for sequence, block in enumerate(blocks, start=1):
            outcome.merge(await self.extract_block(block, sequence, parent_id))
        return outcome

    async def extract_block(
        self,
        block: Element,
        sequence: int,
        parent_id: int | None = None,
    ) -> ParseOutcome:
        outcome = ParseOutcome()
        kind = local_name(block)
        is_container = kind in _CONTAINER_TAGS

        content = SectionTextContent(
            section_id=self.section_id,
            parent_section_text_content_id=parent_id,
            content_type=content_type(block),
            style_code=stripped(attr(block, A.STYLE_CODE)),
            sequence_number=sequence,
            content_text=None if is_container else (inner_xml(block) or None),
        )
        await self.session.create(content)
        outcome.record(content)

        if kind == E.LIST:
            outcome.merge(await self.extract_list(block, content.id))
        elif kind == E.TABLE:
            outcome.merge(await self.extract_table(block, content.id))

        if is_named(block, E.RENDER_MULTIMEDIA):
            outcome.merge(await link_rendered_media(
                [block], content.id, self.media_ids, self.session, is_inline=False,
            ))
            return outcome

        nested = [] if is_container else content_blocks(block, include_media=False)

        inline = _inline_render_elements(block, nested)
        if inline:
            outcome.merge(await link_rendered_media(
                inline, content.id, self.media_ids, self.session, is_inline=True,
            ))

        if nested:
            outcome.merge(await self.extract_blocks(nested, parent_id=content.id))

        return outcome

    async def extract_list(self, list_el: Element, text_content_id: int) -> ParseOutcome:
        outcome = ParseOutcome()

        text_list = TextList(
            section_text_content_id=text_content_id,
            list_type=attr(list_el, A.LIST_TYPE),
            style_code=attr(list_el, A.STYLE_CODE),
        )
        await self.session.create(text_list)
        outcome.record(text_list)

        sequence = 1
        for item_el in children(list_el, E.ITEM):
            item_text = _item_xml(item_el)
            if not item_text:
                continue

            item = TextListItem(
                text_list_id=text_list.id,
                sequence_number=sequence,
                item_caption=stripped(text(child(item_el, E.CAPTION))),
                item_text=item_text,
            )
            await self.session.create(item)
            outcome.record(item)
            sequence += 1

        return outcome

    async def extract_table(self, table_el: Element, text_content_id: int) -> ParseOutcome:
        outcome = ParseOutcome()

        table = TextTable(
            section_text_content_id=text_content_id,
            width=attr(table_el, A.WIDTH),
            has_header=child(table_el, E.THEAD) is not None,
            has_footer=child(table_el, E.TFOOT) is not None,
        )
        await self.session.create(table)
        outcome.record(table)

        for group_tag, group_type in TABLE_ROW_GROUPS:
            for group_el in children(table_el, group_tag):
                outcome.merge(await self._extract_rows(children(group_el, E.TR), table.id, group_type))

        # Rows written directly under <table> without a <tbody>
        bare_rows = children(table_el, E.TR)
        if bare_rows:
            outcome.merge(await self._extract_rows(bare_rows, table.id, "Body"))

        return outcome

    async def _extract_rows(self, row_els: list[Element], table_id: int, group_type: str) -> ParseOutcome:
        outcome = ParseOutcome()

        for row_sequence, row_el in enumerate(row_els, start=1):
            row = TextTableRow(
                text_table_id=table_id,
                row_group_type=group_type,
                sequence_number=row_sequence,
                style_code=attr(row_el, A.STYLE_CODE),
            )
            await self.session.create(row)
            outcome.record(row)

            cell_els = [el for el in element_children(row_el) if is_named(el, E.TD, E.TH)]
            for cell_sequence, cell_el in enumerate(cell_els, start=1):
                cell = TextTableCell(
                    text_table_row_id=row.id,
                    cell_type=local_name(cell_el),
                    sequence_number=cell_sequence,
                    cell_text=inner_xml(cell_el),
                    row_span=_positive(parse_int(attr(cell_el, A.ROWSPAN))),
                    col_span=_positive(parse_int(attr(cell_el, A.COLSPAN))),
                    style_code=attr(cell_el, A.STYLE_CODE),
                    align=attr(cell_el, A.ALIGN),
                    valign=attr(cell_el, A.VALIGN),
                )
                await self.session.create(cell)
                outcome.record(cell)

        return outcome


def _positive(value: int | None) -> int | None:
    return value if value is not None and value > 0 else None


async def extract_highlights(section_el: Element, section_id: int, session: ParseSession) -> ParseOutcome:
    """
    Excerpt highlights of a section.

    Reads ``excerpt//highlight/text`` and ``highlight/text`` directly under
    the section. Markup is dropped and whitespace normalized; empty and
    repeated highlights within a section are skipped.
    """
    outcome = ParseOutcome()
    seen = set()

    text_els = xpath(
        section_el,
        f"spl:{E.EXCERPT}//spl:{E.HIGHLIGHT}/spl:{E.TEXT} | spl:{E.HIGHLIGHT}/spl:{E.TEXT}",
    )
    for text_el in text_els:
        highlight_text = normalize_whitespace(text(text_el))
        if not highlight_text or highlight_text in seen:
            continue
        seen.add(highlight_text)

        highlight = SectionExcerptHighlight(section_id=section_id, highlight_text=highlight_text)
        await session.create(highlight)
        outcome.record(highlight)

    return outcome
