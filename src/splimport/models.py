"""
Entities produced by the SPL import pipeline.

Each dataclass maps to one relational table. ``id`` is ``None`` until a
repository persists the entity and assigns its generated identity; foreign
keys reference those identities.

Section parent/child links live in ``SectionHierarchy`` rather than on
``Section`` so that a section can take on more structural roles without a
schema change.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID


# ============================================================================
# Document level
# ============================================================================

@dataclass
class Document:
    """One labeling submission; one per imported file."""
    id: int | None = None
    document_guid: UUID | None = None
    document_code: str | None = None
    document_code_system: str | None = None
    document_display_name: str | None = None
    title: str | None = None
    effective_time: datetime | None = None
    set_guid: UUID | None = None
    version_number: int | None = None
    submission_file_name: str | None = None


@dataclass
class Organization:
    id: int | None = None
    organization_name: str | None = None
    is_confidential: bool = False


@dataclass
class DocumentAuthor:
    """Join of Document and Organization with a role tag."""
    id: int | None = None
    document_id: int | None = None
    organization_id: int | None = None
    author_type: str | None = None


@dataclass
class StructuredBody:
    id: int | None = None
    document_id: int | None = None


# ============================================================================
# Sections
# ============================================================================

@dataclass
class Section:
    """
    A titled, coded content unit.

    ``structured_body_id`` is set only for top-level sections. Nested sections
    are attached through a ``SectionHierarchy`` row instead.
    """
    id: int | None = None
    structured_body_id: int | None = None
    section_link_guid: str | None = None
    section_guid: UUID | None = None
    section_code: str | None = None
    section_code_system: str | None = None
    section_display_name: str | None = None
    title: str | None = None
    effective_time: datetime | None = None


@dataclass
class SectionHierarchy:
    id: int | None = None
    parent_section_id: int | None = None
    child_section_id: int | None = None
    sequence_number: int | None = None


@dataclass
class SectionTextContent:
    """
    One content block (paragraph, list, table, excerpt, image) of a section.

    Blocks nest: ``parent_section_text_content_id`` points at the enclosing
    block and ``sequence_number`` restarts at 1 under each parent.
    """
    id: int | None = None
    section_id: int | None = None
    parent_section_text_content_id: int | None = None
    content_type: str | None = None
    style_code: str | None = None
    sequence_number: int | None = None
    content_text: str | None = None


@dataclass
class TextList:
    id: int | None = None
    section_text_content_id: int | None = None
    list_type: str | None = None
    style_code: str | None = None


@dataclass
class TextListItem:
    id: int | None = None
    text_list_id: int | None = None
    sequence_number: int | None = None
    item_caption: str | None = None
    item_text: str | None = None


@dataclass
class TextTable:
    id: int | None = None
    section_text_content_id: int | None = None
    width: str | None = None
    has_header: bool = False
    has_footer: bool = False


@dataclass
class TextTableRow:
    id: int | None = None
    text_table_id: int | None = None
    row_group_type: str | None = None
    sequence_number: int | None = None
    style_code: str | None = None


@dataclass
class TextTableCell:
    id: int | None = None
    text_table_row_id: int | None = None
    cell_type: str | None = None
    sequence_number: int | None = None
    cell_text: str | None = None
    row_span: int | None = None
    col_span: int | None = None
    style_code: str | None = None
    align: str | None = None
    valign: str | None = None


@dataclass
class SectionExcerptHighlight:
    id: int | None = None
    section_id: int | None = None
    highlight_text: str | None = None


@dataclass
class ObservationMedia:
    id: int | None = None
    section_id: int | None = None
    media_id: str | None = None
    description_text: str | None = None
    media_type: str | None = None
    xsi_type: str | None = None
    file_name: str | None = None


@dataclass
class RenderedMedia:
    """Placement of an ObservationMedia image inside a content block."""
    id: int | None = None
    section_text_content_id: int | None = None
    observation_media_id: int | None = None
    sequence_in_content: int | None = None
    is_inline: bool = False


# ============================================================================
# Products and ingredients
# ============================================================================

@dataclass
class Product:
    id: int | None = None
    section_id: int | None = None
    product_name: str | None = None
    form_code: str | None = None
    form_code_system: str | None = None
    form_display_name: str | None = None


@dataclass
class IngredientSubstance:
    """Substance referenced by an ingredient. Created per extraction, never deduplicated."""
    id: int | None = None
    unii: str | None = None
    substance_name: str | None = None


@dataclass
class Ingredient:
    id: int | None = None
    product_id: int | None = None
    ingredient_substance_id: int | None = None
    class_code: str | None = None
    quantity_numerator: Decimal | None = None
    quantity_numerator_unit: str | None = None
    quantity_denominator: Decimal | None = None
    quantity_denominator_unit: str | None = None


@dataclass
class ActiveMoiety:
    id: int | None = None
    ingredient_substance_id: int | None = None
    moiety_unii: str | None = None
    moiety_name: str | None = None


@dataclass
class ProductIdentifier:
    """Item code of a product (NDC product code, GTIN, ...)."""
    id: int | None = None
    product_id: int | None = None
    identifier_value: str | None = None
    identifier_system_oid: str | None = None
    identifier_type: str | None = None


@dataclass
class PackagingLevel:
    """
    One package in a product's packaging tree.

    Only outermost levels carry ``product_id``; inner levels are reached
    through ``PackagingHierarchy``.
    """
    id: int | None = None
    product_id: int | None = None
    quantity_numerator: Decimal | None = None
    quantity_numerator_unit: str | None = None
    quantity_denominator: Decimal | None = None
    package_form_code: str | None = None
    package_form_code_system: str | None = None
    package_form_display_name: str | None = None


@dataclass
class PackagingHierarchy:
    id: int | None = None
    outer_packaging_level_id: int | None = None
    inner_packaging_level_id: int | None = None
    sequence_number: int | None = None


@dataclass
class PackageIdentifier:
    id: int | None = None
    packaging_level_id: int | None = None
    identifier_value: str | None = None
    identifier_system_oid: str | None = None
    identifier_type: str | None = None


# ============================================================================
# Indexing metadata
# ============================================================================

@dataclass
class IdentifiedSubstance:
    id: int | None = None
    section_id: int | None = None
    subject_type: str | None = None
    substance_identifier_value: str | None = None
    substance_identifier_system_oid: str | None = None
    is_definition: bool = False


@dataclass
class PharmacologicClass:
    id: int | None = None
    identified_substance_id: int | None = None
    class_code: str | None = None
    class_code_system: str | None = None
    class_display_name: str | None = None


@dataclass
class PharmacologicClassName:
    id: int | None = None
    pharmacologic_class_id: int | None = None
    name_value: str | None = None
    name_use: str | None = None


@dataclass
class PharmacologicClassLink:
    id: int | None = None
    active_moiety_substance_id: int | None = None
    pharmacologic_class_id: int | None = None


@dataclass
class PharmacologicClassHierarchy:
    id: int | None = None
    child_pharmacologic_class_id: int | None = None
    parent_pharmacologic_class_id: int | None = None


# ============================================================================
# Tolerance specifications
# ============================================================================

@dataclass
class SubstanceSpecification:
    id: int | None = None
    identified_substance_id: int | None = None
    spec_code: str | None = None
    spec_code_system: str | None = None
    enforcement_method_code: str | None = None
    enforcement_method_code_system: str | None = None
    enforcement_method_display_name: str | None = None


@dataclass
class Analyte:
    id: int | None = None
    substance_specification_id: int | None = None
    analyte_substance_id: int | None = None


@dataclass
class Commodity:
    id: int | None = None
    commodity_code: str | None = None
    commodity_code_system: str | None = None
    commodity_display_name: str | None = None
    commodity_name: str | None = None


@dataclass
class ApplicationType:
    id: int | None = None
    app_type_code: str | None = None
    app_type_code_system: str | None = None
    app_type_display_name: str | None = None


@dataclass
class ObservationCriterion:
    id: int | None = None
    substance_specification_id: int | None = None
    tolerance_high_value: Decimal | None = None
    tolerance_high_unit: str | None = None
    commodity_id: int | None = None
    application_type_id: int | None = None
    expiration_date: datetime | None = None
    text_note: str | None = None
