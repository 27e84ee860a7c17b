"""
Observation media and the content blocks that render them.

A section declares its images once, as ``component/observationMedia``
elements with an ``ID``. Content blocks point back at them with
``<renderMultimedia referencedObject="...">``. Media are therefore extracted
before content so that every reference can be resolved within the section.
"""

from dataclasses import dataclass, field

from splimport.ingestion.constants import A, E
from splimport.ingestion.result import ParseOutcome
from splimport.ingestion.session import ParseSession
from splimport.ingestion.xmltree import (
    Element,
    attr,
    child,
    child_attr,
    child_text,
    children,
    is_named,
    stripped,
    xpath,
    xsi_type,
)
from splimport.models import ObservationMedia, RenderedMedia


@dataclass
class MediaOutcome(ParseOutcome):
    """Media extraction result; ``media_ids`` maps media ``ID`` to row id."""
    media_ids: dict[str, int] = field(default_factory=dict)


async def extract_observation_media(
    section_el: Element,
    section_id: int,
    session: ParseSession,
) -> MediaOutcome:
    outcome = MediaOutcome()

    for media_el in children(section_el, E.COMPONENT, E.OBSERVATION_MEDIA):
        media_id = attr(media_el, A.ID)
        if not media_id:
            session.logger.warning("observation_media_without_id", section_id=section_id)
            continue

        value_el = child(media_el, E.VALUE)
        media = ObservationMedia(
            section_id=section_id,
            media_id=media_id,
            description_text=stripped(child_text(media_el, E.TEXT)),
            media_type=attr(value_el, A.MEDIA_TYPE),
            xsi_type=xsi_type(value_el),
            file_name=child_attr(value_el, E.REFERENCE, attribute=A.VALUE),
        )
        await session.create(media)
        outcome.record(media)
        outcome.media_ids[media_id] = media.id

    return outcome


def render_elements(block_el: Element) -> list[Element]:
    """The block itself when it is a ``renderMultimedia``, else its descendants of that tag."""
    if is_named(block_el, E.RENDER_MULTIMEDIA):
        return [block_el]
    return xpath(block_el, f".//spl:{E.RENDER_MULTIMEDIA}")


async def link_rendered_media(
    render_els: list[Element],
    text_content_id: int,
    media_ids: dict[str, int],
    session: ParseSession,
    is_inline: bool,
) -> ParseOutcome:
    """
    Link a content block to the observation media it renders.

    Links are numbered in document order starting at 1. References without a
    matching media element in the same section are logged and skipped.
    """
    outcome = ParseOutcome()

    sequence = 1
    for render_el in render_els:
        referenced = attr(render_el, A.REFERENCED_OBJECT)
        if not referenced:
            session.logger.warning("render_multimedia_without_reference")
            continue

        observation_media_id = media_ids.get(referenced)
        if observation_media_id is None:
            session.logger.warning("dangling_media_reference", referenced_object=referenced)
            continue

        rendered = RenderedMedia(
            section_text_content_id=text_content_id,
            observation_media_id=observation_media_id,
            sequence_in_content=sequence,
            is_inline=is_inline,
        )
        await session.create(rendered)
        outcome.record(rendered)
        sequence += 1

    return outcome
