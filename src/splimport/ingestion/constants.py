"""
SPL element names, attribute names and code values.

Names are local names in the HL7 v3 namespace.
"""


class E:
    """Element local names."""
    DOCUMENT = "document"
    ID = "id"
    CODE = "code"
    TITLE = "title"
    EFFECTIVE_TIME = "effectiveTime"
    SET_ID = "setId"
    VERSION_NUMBER = "versionNumber"

    AUTHOR = "author"
    ASSIGNED_ENTITY = "assignedEntity"
    REPRESENTED_ORGANIZATION = "representedOrganization"
    NAME = "name"
    CONFIDENTIALITY_CODE = "confidentialityCode"

    COMPONENT = "component"
    STRUCTURED_BODY = "structuredBody"
    SECTION = "section"
    SUBJECT = "subject"
    SUBJECT_OF = "subjectOf"

    TEXT = "text"
    EXCERPT = "excerpt"
    HIGHLIGHT = "highlight"
    PARAGRAPH = "paragraph"
    LIST = "list"
    ITEM = "item"
    CAPTION = "caption"
    TABLE = "table"
    THEAD = "thead"
    TBODY = "tbody"
    TFOOT = "tfoot"
    TR = "tr"
    TD = "td"
    TH = "th"
    RENDER_MULTIMEDIA = "renderMultimedia"
    OBSERVATION_MEDIA = "observationMedia"
    VALUE = "value"
    REFERENCE = "reference"

    MANUFACTURED_PRODUCT = "manufacturedProduct"
    MANUFACTURED_MEDICINE = "manufacturedMedicine"
    FORM_CODE = "formCode"
    INGREDIENT = "ingredient"
    ACTIVE_INGREDIENT = "activeIngredient"
    INACTIVE_INGREDIENT = "inactiveIngredient"
    INGREDIENT_SUBSTANCE = "ingredientSubstance"
    ACTIVE_INGREDIENT_SUBSTANCE = "activeIngredientSubstance"
    INACTIVE_INGREDIENT_SUBSTANCE = "inactiveIngredientSubstance"
    ACTIVE_MOIETY = "activeMoiety"
    QUANTITY = "quantity"
    NUMERATOR = "numerator"
    DENOMINATOR = "denominator"
    AS_CONTENT = "asContent"
    CONTAINER_PACKAGED_PRODUCT = "containerPackagedProduct"

    IDENTIFIED_SUBSTANCE = "identifiedSubstance"
    AS_SPECIALIZED_KIND = "asSpecializedKind"
    GENERALIZED_MATERIAL_KIND = "generalizedMaterialKind"

    SUBSTANCE_SPECIFICATION = "substanceSpecification"
    OBSERVATION = "observation"
    ANALYTE = "analyte"
    REFERENCE_RANGE = "referenceRange"
    OBSERVATION_CRITERION = "observationCriterion"
    HIGH = "high"
    PRESENT_SUBSTANCE = "presentSubstance"
    APPROVAL = "approval"


class A:
    """Attribute names."""
    ROOT = "root"
    CODE = "code"
    CODE_SYSTEM = "codeSystem"
    DISPLAY_NAME = "displayName"
    VALUE = "value"
    UNIT = "unit"
    ID = "ID"
    CLASS_CODE = "classCode"
    STYLE_CODE = "styleCode"
    LIST_TYPE = "listType"
    WIDTH = "width"
    ROWSPAN = "rowspan"
    COLSPAN = "colspan"
    ALIGN = "align"
    VALIGN = "valign"
    MEDIA_TYPE = "mediaType"
    REFERENCED_OBJECT = "referencedObject"
    USE = "use"


HL7_NAMESPACE = "urn:hl7-org:v3"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"

# Code system OID for UNII substance codes
UNII_CODE_SYSTEM = "2.16.840.1.113883.4.9"

# Item code systems (product and package codes) by OID
NDC_CODE_SYSTEM = "2.16.840.1.113883.6.69"

IDENTIFIER_TYPES = {
    NDC_CODE_SYSTEM: "NDC",
    "1.3.160": "GS1",
    "2.16.840.1.113883.6.40": "HIBCC",
    "2.16.840.1.113883.6.18": "ISBT 128",
    "2.16.840.1.113883.6.301.5": "UDI",
    "2.16.840.1.113883.3.9848": "CLN",
}

# Systems that also label packages; PackageIdentifier types are
# "NDCPackage", "ISBT128Package", ...
PACKAGE_CODE_SYSTEMS = frozenset({
    NDC_CODE_SYSTEM,
    "1.3.160",
    "2.16.840.1.113883.6.40",
    "2.16.840.1.113883.6.18",
    "2.16.840.1.113883.6.301.5",
})

# IdentifiedSubstance.subject_type values
SUBJECT_ACTIVE_MOIETY = "ActiveMoiety"
SUBJECT_PHARMACOLOGIC_CLASS = "PharmacologicClass"
SUBJECT_SUBSTANCE_SPECIFICATION = "SubstanceSpecification"
SUBJECT_ANALYTE = "Analyte"

# PharmacologicClassName.name_use when the <name> carries no use attribute
DEFAULT_NAME_USE = "A"

# Content block tags kept as SectionTextContent rows; anything else is a
# wrapper that is searched through for nested blocks.
CONTENT_BLOCK_TAGS = frozenset({
    E.PARAGRAPH,
    E.LIST,
    E.TABLE,
    E.RENDER_MULTIMEDIA,
    E.EXCERPT,
    E.HIGHLIGHT,
})

# Table row groups in document order with their stored RowGroupType
TABLE_ROW_GROUPS = (
    (E.THEAD, "Header"),
    (E.TBODY, "Body"),
    (E.TFOOT, "Footer"),
)
