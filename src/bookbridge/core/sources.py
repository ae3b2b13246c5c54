# ABOUTME: Chooses which source (original, edition, audiobook) supplies each field's value.
# ABOUTME: Holds the candidate model, the user's selections, and the central priority tables.

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from bookbridge.core.dates import is_complete_date, resolve_date
from bookbridge.metadata.types import SemanticField, SourceRecord

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    ORIGINAL = "original"
    EDITION = "edition"
    AUDIOBOOK = "audiobook"
    AUDIOBOOK_SUMMARY = "audiobook_summary"
    FIRST_PUBLISHED = "first_published"


@dataclass(frozen=True)
class CandidateSource:
    """Which record a candidate value came from.

    index is set only for editions and is the position in
    SourceRecord.editions.
    """

    kind: SourceKind
    index: int | None = None

    @classmethod
    def original(cls) -> "CandidateSource":
        return cls(SourceKind.ORIGINAL)

    @classmethod
    def edition(cls, index: int) -> "CandidateSource":
        return cls(SourceKind.EDITION, index)

    @classmethod
    def audiobook(cls) -> "CandidateSource":
        return cls(SourceKind.AUDIOBOOK)

    @classmethod
    def audiobook_summary(cls) -> "CandidateSource":
        return cls(SourceKind.AUDIOBOOK_SUMMARY)

    @classmethod
    def first_published(cls) -> "CandidateSource":
        return cls(SourceKind.FIRST_PUBLISHED)

    @property
    def tag(self) -> str:
        if self.kind is SourceKind.EDITION:
            return f"edition:{self.index}"
        return self.kind.value

    @classmethod
    def parse(cls, tag: str) -> "CandidateSource":
        """Parse a tag such as "original" or "edition:2".

        Raises:
            ValueError: If the tag is not a known source.
        """
        name, _, index = tag.strip().partition(":")
        kind = SourceKind(name)
        if kind is SourceKind.EDITION:
            if not index.isdigit():
                raise ValueError(f"Edition source needs an index: {tag!r}")
            return cls(kind, int(index))
        return cls(kind)

    def __str__(self) -> str:
        return self.tag


@dataclass(frozen=True)
class CandidateValue:
    """One possible value for a field. variant names the record attribute it came from."""

    source: CandidateSource
    value: Any
    variant: SemanticField | None = None


class FieldSelection:
    """The user's explicit choice of source per field, for one session."""

    def __init__(self) -> None:
        self._choices: dict[SemanticField, CandidateSource] = {}

    def choose(self, field: SemanticField, source: CandidateSource) -> None:
        self._choices[field] = source

    def get(self, field: SemanticField) -> CandidateSource | None:
        return self._choices.get(field)

    def clear(self, field: SemanticField | None = None) -> None:
        if field is None:
            self._choices.clear()
        else:
            self._choices.pop(field, None)

    def items(self) -> list[tuple[SemanticField, CandidateSource]]:
        return list(self._choices.items())

    def __len__(self) -> int:
        return len(self._choices)


# Priority tables. Earlier entries win.
IDENTIFIER_FIELDS = frozenset({SemanticField.ISBN, SemanticField.ISBN13, SemanticField.ISBN10})
IDENTIFIER_VARIANTS = (SemanticField.ISBN13, SemanticField.ISBN, SemanticField.ISBN10)
DATE_FIELDS = frozenset({SemanticField.PUBLISHED_DATE, SemanticField.ORIGINAL_PUBLISHED_DATE})

DATE_SOURCES = (
    SourceKind.FIRST_PUBLISHED,
    SourceKind.ORIGINAL,
    SourceKind.AUDIOBOOK,
    SourceKind.EDITION,
)
THUMBNAIL_SOURCES = (SourceKind.AUDIOBOOK, SourceKind.ORIGINAL, SourceKind.EDITION)
DESCRIPTION_SOURCES = (
    SourceKind.ORIGINAL,
    SourceKind.AUDIOBOOK_SUMMARY,
    SourceKind.AUDIOBOOK,
    SourceKind.EDITION,
)
DEFAULT_SOURCES = (
    SourceKind.ORIGINAL,
    SourceKind.AUDIOBOOK,
    SourceKind.AUDIOBOOK_SUMMARY,
    SourceKind.FIRST_PUBLISHED,
    SourceKind.EDITION,
)

PriorityFn = Callable[[SemanticField, CandidateValue], tuple]


def has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return bool(value)
    return True


def _source_order(field: SemanticField) -> tuple[SourceKind, ...]:
    if field in DATE_FIELDS:
        return DATE_SOURCES
    if field is SemanticField.THUMBNAIL:
        return THUMBNAIL_SOURCES
    if field is SemanticField.DESCRIPTION:
        return DESCRIPTION_SOURCES
    return DEFAULT_SOURCES


def _source_rank(field: SemanticField, source: CandidateSource) -> tuple[int, int]:
    order = _source_order(field)
    rank = order.index(source.kind) if source.kind in order else len(order)
    return rank, source.index or 0


def default_priority(field: SemanticField, candidate: CandidateValue) -> tuple:
    """Sort key for a candidate; lower sorts first."""
    source_rank = _source_rank(field, candidate.source)
    if field in IDENTIFIER_FIELDS:
        variant = candidate.variant or field
        variant_rank = (
            IDENTIFIER_VARIANTS.index(variant)
            if variant in IDENTIFIER_VARIANTS
            else len(IDENTIFIER_VARIANTS)
        )
        return (variant_rank, *source_rank)
    if field in DATE_FIELDS:
        completeness = 0 if is_complete_date(str(candidate.value)) else 1
        return (completeness, *source_rank)
    return source_rank


def _prefer_earlier_audiobook(
    chosen: CandidateValue, candidates: list[CandidateValue]
) -> CandidateValue:
    if chosen.source.kind is SourceKind.AUDIOBOOK:
        return chosen
    audiobook = next((c for c in candidates if c.source.kind is SourceKind.AUDIOBOOK), None)
    if audiobook is None or not is_complete_date(str(audiobook.value)):
        return chosen
    audiobook_date = resolve_date(audiobook.value)
    chosen_date = resolve_date(chosen.value)
    if audiobook_date is None or chosen_date is None:
        return chosen
    if audiobook_date.value < chosen_date.value:
        logger.debug(
            "Audiobook date %s predates %s; preferring it", audiobook_date.value, chosen_date.value
        )
        return audiobook
    return chosen


def select_field_source(
    field: SemanticField,
    candidates: Iterable[CandidateValue],
    explicit: CandidateSource | None = None,
    *,
    priority_fn: PriorityFn = default_priority,
    prefer_earlier_audiobook_date: bool = True,
) -> Any:
    """Pick the effective value for one field.

    An explicit choice naming a non-empty candidate always wins. Otherwise
    candidates are ranked by priority_fn. For dates, an audiobook date that
    is complete and earlier than the winner takes over when
    prefer_earlier_audiobook_date is set. Returns None with no candidates.
    """
    present = [c for c in candidates if has_value(c.value)]
    if not present:
        return None

    if explicit is not None:
        for candidate in present:
            if candidate.source == explicit:
                return candidate.value
        logger.debug("Selected source %s has no %s; using default", explicit, field.value)

    ranked = sorted(present, key=lambda c: priority_fn(field, c))
    chosen = ranked[0]
    if field in DATE_FIELDS and prefer_earlier_audiobook_date:
        chosen = _prefer_earlier_audiobook(chosen, present)
    return chosen.value


def enrich_from_editions(record: SourceRecord) -> SourceRecord:
    """Fill fields the original record lacks from its most complete edition."""
    if not record.editions:
        return record
    best = max(record.editions, key=lambda e: e.completeness())
    updates: dict[str, Any] = {}
    for name in (
        "publisher",
        "published_date",
        "page_count",
        "isbn13",
        "isbn10",
        "description",
        "thumbnail",
        "language",
    ):
        if not has_value(getattr(record, name)) and has_value(getattr(best, name)):
            updates[name] = getattr(best, name)
    if not has_value(record.authors) and best.authors:
        updates["authors"] = list(best.authors)
    if updates:
        logger.debug("Enriched %s from edition: %s", record.title, ", ".join(sorted(updates)))
        return replace(record, **updates)
    return record


_ORIGINAL_ATTRIBUTES: dict[SemanticField, str] = {
    SemanticField.TITLE: "title",
    SemanticField.AUTHORS: "authors",
    SemanticField.ISBN13: "isbn13",
    SemanticField.ISBN10: "isbn10",
    SemanticField.DESCRIPTION: "description",
    SemanticField.CATEGORIES: "categories",
    SemanticField.PUBLISHED_DATE: "published_date",
    SemanticField.ORIGINAL_PUBLISHED_DATE: "original_published_date",
    SemanticField.PUBLISHER: "publisher",
    SemanticField.PAGE_COUNT: "page_count",
    SemanticField.THUMBNAIL: "thumbnail",
    SemanticField.LANGUAGE: "language",
    SemanticField.AVERAGE_RATING: "average_rating",
    SemanticField.RATINGS_COUNT: "ratings_count",
}

_EDITION_ATTRIBUTES: dict[SemanticField, str] = {
    SemanticField.TITLE: "title",
    SemanticField.AUTHORS: "authors",
    SemanticField.ISBN13: "isbn13",
    SemanticField.ISBN10: "isbn10",
    SemanticField.DESCRIPTION: "description",
    SemanticField.PUBLISHED_DATE: "published_date",
    SemanticField.PUBLISHER: "publisher",
    SemanticField.PAGE_COUNT: "page_count",
    SemanticField.THUMBNAIL: "thumbnail",
    SemanticField.LANGUAGE: "language",
}

_AUDIOBOOK_ATTRIBUTES: dict[SemanticField, str] = {
    SemanticField.TITLE: "title",
    SemanticField.AUTHORS: "authors",
    SemanticField.DESCRIPTION: "description",
    SemanticField.PUBLISHED_DATE: "published_date",
    SemanticField.PUBLISHER: "publisher",
    SemanticField.THUMBNAIL: "image",
    SemanticField.LANGUAGE: "language",
    SemanticField.AUDIOBOOK_PUBLISHER: "publisher",
    SemanticField.AUDIOBOOK_NARRATORS: "narrators",
    SemanticField.AUDIOBOOK_DURATION: "duration_label",
    SemanticField.AUDIOBOOK_CHAPTERS: "chapters",
    SemanticField.AUDIOBOOK_ASIN: "asin",
    SemanticField.AUDIOBOOK_URL: "url",
    SemanticField.AUDIOBOOK_RATING: "rating",
}


def _add_isbn_variants(
    out: dict[SemanticField, list[CandidateValue]], source: CandidateSource, item: Any
) -> None:
    for variant in (SemanticField.ISBN13, SemanticField.ISBN10):
        value = getattr(item, variant.value)
        if has_value(value):
            out.setdefault(SemanticField.ISBN, []).append(CandidateValue(source, value, variant))


def gather_candidates(record: SourceRecord) -> dict[SemanticField, list[CandidateValue]]:
    """Collect every candidate value per field from the original, editions, and audiobook."""
    out: dict[SemanticField, list[CandidateValue]] = {}

    def add(field: SemanticField, source: CandidateSource, value: Any) -> None:
        if has_value(value):
            out.setdefault(field, []).append(CandidateValue(source, value, field))

    original = CandidateSource.original()
    for field, attr in _ORIGINAL_ATTRIBUTES.items():
        add(field, original, getattr(record, attr))
    add(SemanticField.PUBLISHED_DATE, CandidateSource.first_published(), record.original_published_date)
    _add_isbn_variants(out, original, record)

    for index, edition in enumerate(record.editions):
        source = CandidateSource.edition(index)
        for field, attr in _EDITION_ATTRIBUTES.items():
            add(field, source, getattr(edition, attr))
        _add_isbn_variants(out, source, edition)

    if record.audiobook is not None:
        audiobook = CandidateSource.audiobook()
        for field, attr in _AUDIOBOOK_ATTRIBUTES.items():
            add(field, audiobook, getattr(record.audiobook, attr))
        add(SemanticField.DESCRIPTION, CandidateSource.audiobook_summary(), record.audiobook.summary)

    return out


def raw_categories(record: SourceRecord) -> list[str]:
    """Categories from every source, original first, without duplicates."""
    seen: set[str] = set()
    out: list[str] = []
    groups: list[Iterable[str]] = [record.categories]
    groups.extend(edition.categories for edition in record.editions)
    if record.audiobook is not None:
        groups.append(record.audiobook.genres)
    for group in groups:
        for category in group:
            key = category.strip().casefold()
            if key and key not in seen:
                seen.add(key)
                out.append(category.strip())
    return out


def _parse_defaults(field_defaults: Mapping[str, str]) -> dict[SemanticField, CandidateSource]:
    parsed: dict[SemanticField, CandidateSource] = {}
    for field_name, tag in field_defaults.items():
        try:
            parsed[SemanticField(field_name)] = CandidateSource.parse(tag)
        except ValueError:
            logger.warning("Ignoring invalid field default %s=%r", field_name, tag)
    return parsed


def build_effective_record(
    record: SourceRecord,
    selection: FieldSelection | None = None,
    field_defaults: Mapping[str, str] | None = None,
    *,
    prefer_earlier_audiobook_date: bool = True,
) -> dict[SemanticField, Any]:
    """Resolve every field with candidates down to one value.

    A session selection beats a saved default, which beats the priority tables.
    """
    enriched = enrich_from_editions(record)
    defaults = _parse_defaults(field_defaults or {})
    effective: dict[SemanticField, Any] = {}
    for field, candidates in gather_candidates(enriched).items():
        explicit = (selection.get(field) if selection else None) or defaults.get(field)
        value = select_field_source(
            field,
            candidates,
            explicit,
            prefer_earlier_audiobook_date=prefer_earlier_audiobook_date,
        )
        if value is not None:
            effective[field] = value
    return effective


def available_sources(record: SourceRecord, field: SemanticField) -> list[CandidateSource]:
    """Sources that can supply a value for a field, for choosing interactively."""
    candidates = gather_candidates(enrich_from_editions(record)).get(field, [])
    return [c.source for c in candidates]

