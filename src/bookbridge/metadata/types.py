# ABOUTME: Core data structures shared by the reconciliation engine.
# ABOUTME: Semantic fields, destination property kinds, and source/edition/audiobook records.

from dataclasses import dataclass, field
from enum import Enum


class SemanticField(str, Enum):
    """A book attribute, independent of any destination schema."""

    TITLE = "title"
    AUTHORS = "authors"
    ISBN13 = "isbn13"
    ISBN10 = "isbn10"
    ISBN = "isbn"
    DESCRIPTION = "description"
    CATEGORIES = "categories"
    PUBLISHED_DATE = "published_date"
    ORIGINAL_PUBLISHED_DATE = "original_published_date"
    PUBLISHER = "publisher"
    PAGE_COUNT = "page_count"
    THUMBNAIL = "thumbnail"
    LANGUAGE = "language"
    AVERAGE_RATING = "average_rating"
    RATINGS_COUNT = "ratings_count"
    AUDIOBOOK_PUBLISHER = "audiobook_publisher"
    AUDIOBOOK_NARRATORS = "audiobook_narrators"
    AUDIOBOOK_DURATION = "audiobook_duration"
    AUDIOBOOK_CHAPTERS = "audiobook_chapters"
    AUDIOBOOK_ASIN = "audiobook_asin"
    AUDIOBOOK_URL = "audiobook_url"
    AUDIOBOOK_RATING = "audiobook_rating"


class PropertyKind(str, Enum):
    """Destination property types, valued with Notion's wire names.

    OTHER covers property types the engine never writes to directly
    (formula, relation, people, ...).
    """

    TITLE = "title"
    RICH_TEXT = "rich_text"
    MULTI_SELECT = "multi_select"
    SELECT = "select"
    NUMBER = "number"
    DATE = "date"
    URL = "url"
    FILES = "files"
    CHECKBOX = "checkbox"
    OTHER = "other"

    @classmethod
    def from_wire(cls, type_name: str) -> "PropertyKind":
        """Map a Notion property type string to a PropertyKind."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.OTHER


@dataclass
class EditionRecord:
    """One alternate edition of a work, as reported by a bibliographic source."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    publisher: str | None = None
    published_date: str | None = None
    page_count: int | None = None
    isbn13: str | None = None
    isbn10: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    language: str | None = None
    categories: list[str] = field(default_factory=list)

    def completeness(self) -> int:
        """Number of populated fields, used to pick the richest edition."""
        values = (
            self.title,
            self.authors,
            self.publisher,
            self.published_date,
            self.page_count,
            self.isbn13 or self.isbn10,
            self.description,
            self.thumbnail,
            self.language,
            self.categories,
        )
        return sum(1 for value in values if value)


@dataclass
class AudiobookRecord:
    """Audiobook metadata for the same work (Audible-style fields)."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    narrators: list[str] = field(default_factory=list)
    publisher: str | None = None
    published_date: str | None = None
    description: str | None = None
    summary: str | None = None
    image: str | None = None
    duration_hours: float | None = None
    chapters: int | None = None
    asin: str | None = None
    url: str | None = None
    rating: float | None = None
    rating_count: int | None = None
    genres: list[str] = field(default_factory=list)
    language: str | None = None

    @property
    def duration_label(self) -> str | None:
        """Human duration: minutes under an hour, else hours to one decimal."""
        if not self.duration_hours:
            return None
        if self.duration_hours < 1:
            return f"{round(self.duration_hours * 60)} min"
        return f"{self.duration_hours:.1f} hrs"


@dataclass
class SourceRecord:
    """The book being reconciled: the original record plus its alternates.

    The original record is what the user searched for; editions and the
    audiobook contribute competing candidate values for the same fields.
    """

    title: str
    authors: list[str] = field(default_factory=list)
    isbn13: str | None = None
    isbn10: str | None = None
    description: str | None = None
    categories: list[str] = field(default_factory=list)
    published_date: str | None = None
    original_published_date: str | None = None
    publisher: str | None = None
    page_count: int | None = None
    thumbnail: str | None = None
    language: str | None = None
    average_rating: float | None = None
    ratings_count: int | None = None
    identifiers: dict[str, str] = field(default_factory=dict)
    editions: list[EditionRecord] = field(default_factory=list)
    audiobook: AudiobookRecord | None = None
    audiobook_checked: bool = False

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    @property
    def isbn(self) -> str | None:
        """Most specific ISBN available on the original record."""
        return self.isbn13 or self.isbn10

    @property
    def audiobook_genres(self) -> list[str] | None:
        """Audiobook genres, or None when no audiobook data was gathered.

        An empty list means the audiobook source was consulted and found no
        genres (or no audiobook at all), which is different from not knowing.
        """
        if self.audiobook is None:
            return [] if self.audiobook_checked else None
        return list(self.audiobook.genres)
