# ABOUTME: The semantic field table: value kind, mapping priority, and name keywords.
# ABOUTME: Drives mapping suggestion order and the order properties are built in.

from dataclasses import dataclass

from bookbridge.metadata.types import PropertyKind, SemanticField


@dataclass(frozen=True)
class FieldSpec:
    """How a semantic field is matched against destination properties.

    Lower priority numbers are mapped first and win property collisions.
    """

    field: SemanticField
    value_kind: PropertyKind
    priority: int
    keywords: tuple[str, ...] = ()


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(SemanticField.TITLE, PropertyKind.TITLE, 1, ("title", "name", "book")),
    FieldSpec(
        SemanticField.AUTHORS,
        PropertyKind.MULTI_SELECT,
        1,
        ("author", "authors", "writer", "by"),
    ),
    FieldSpec(SemanticField.ISBN13, PropertyKind.RICH_TEXT, 1, ("isbn", "isbn13", "isbn-13")),
    FieldSpec(
        SemanticField.DESCRIPTION,
        PropertyKind.RICH_TEXT,
        1,
        ("description", "summary", "synopsis", "about"),
    ),
    FieldSpec(
        SemanticField.CATEGORIES,
        PropertyKind.MULTI_SELECT,
        1,
        ("category", "categories", "genre", "genres", "subject", "subjects"),
    ),
    FieldSpec(
        SemanticField.PUBLISHED_DATE,
        PropertyKind.DATE,
        1,
        ("published", "date", "publication", "release"),
    ),
    FieldSpec(SemanticField.PUBLISHER, PropertyKind.SELECT, 1, ("publisher", "publishing", "press")),
    FieldSpec(SemanticField.PAGE_COUNT, PropertyKind.NUMBER, 1, ("pages", "page", "count", "length")),
    FieldSpec(SemanticField.ISBN10, PropertyKind.RICH_TEXT, 2, ("isbn10", "isbn-10")),
    FieldSpec(
        SemanticField.THUMBNAIL,
        PropertyKind.FILES,
        2,
        ("cover", "image", "thumbnail", "picture"),
    ),
    FieldSpec(SemanticField.LANGUAGE, PropertyKind.SELECT, 2, ("language", "lang")),
    FieldSpec(SemanticField.AVERAGE_RATING, PropertyKind.NUMBER, 2, ("rating", "score", "stars")),
    FieldSpec(SemanticField.RATINGS_COUNT, PropertyKind.NUMBER, 3, ("ratings", "reviews", "count")),
    FieldSpec(
        SemanticField.ORIGINAL_PUBLISHED_DATE,
        PropertyKind.DATE,
        3,
        ("first published", "original publication", "original date"),
    ),
    FieldSpec(
        SemanticField.AUDIOBOOK_NARRATORS,
        PropertyKind.MULTI_SELECT,
        3,
        ("narrator", "narrators", "read by"),
    ),
    FieldSpec(
        SemanticField.AUDIOBOOK_DURATION,
        PropertyKind.RICH_TEXT,
        3,
        ("duration", "runtime", "listening time"),
    ),
    FieldSpec(SemanticField.AUDIOBOOK_CHAPTERS, PropertyKind.NUMBER, 3, ("chapters",)),
    FieldSpec(SemanticField.AUDIOBOOK_ASIN, PropertyKind.RICH_TEXT, 3, ("asin",)),
    FieldSpec(SemanticField.AUDIOBOOK_URL, PropertyKind.URL, 3, ("audible", "audiobook link")),
    FieldSpec(
        SemanticField.AUDIOBOOK_PUBLISHER,
        PropertyKind.SELECT,
        3,
        ("audiobook publisher", "audio publisher"),
    ),
    FieldSpec(SemanticField.AUDIOBOOK_RATING, PropertyKind.NUMBER, 3, ("audiobook rating",)),
)

_SPECS_BY_FIELD: dict[SemanticField, FieldSpec] = {spec.field: spec for spec in FIELD_SPECS}


def spec_for(field: SemanticField) -> FieldSpec | None:
    """Look up the default spec for a semantic field."""
    return _SPECS_BY_FIELD.get(field)


def ordered_fields(specs: tuple[FieldSpec, ...] = FIELD_SPECS) -> list[SemanticField]:
    """Semantic fields in mapping order: ascending priority, table order within a tier."""
    return [spec.field for spec in sorted(specs, key=lambda s: s.priority)]
