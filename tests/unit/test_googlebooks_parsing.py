# ABOUTME: Unit tests for Google Books response parsing.
# ABOUTME: Covers identifiers, image links, volume records, and alternate editions.

from bookbridge.metadata.googlebooks_parser import (
    parse_identifiers,
    parse_thumbnail,
    parse_volume,
    parse_volume_edition,
    parse_volumes_response,
)
from tests.fixtures.googlebooks_responses import (
    EMPTY_RESPONSE,
    OTHER_VOLUME,
    TITLE_SEARCH_RESPONSE,
    VOLUME,
)


class TestParseVolume:
    """Tests for parse_volume."""

    def test_basic_fields(self) -> None:
        record = parse_volume(VOLUME)

        assert record.title == "The Name of the Rose: A Novel"
        assert record.authors == ["Umberto Eco"]
        assert record.isbn13 == "9780156001311"
        assert record.isbn10 == "0156001314"
        assert record.publisher == "Harcourt"
        assert record.published_date == "1994-09"
        assert record.page_count == 536
        assert record.categories == ["Fiction"]
        assert record.language == "en"
        assert record.average_rating == 4.0
        assert record.ratings_count == 210
        assert record.identifiers == {"google_books": "8ZkRAQAAIAAJ"}

    def test_thumbnail_prefers_larger_image_over_https(self) -> None:
        assert parse_volume(VOLUME).thumbnail == (
            "https://books.google.com/books/content?id=8ZkRAQAAIAAJ&zoom=1"
        )

    def test_missing_title(self) -> None:
        record = parse_volume({"volumeInfo": {}})
        assert record.title == "Unknown"
        assert record.identifiers == {}


class TestHelpers:
    def test_identifiers_ignore_other_kinds(self) -> None:
        assert parse_identifiers(OTHER_VOLUME["volumeInfo"]) == (None, None)

    def test_thumbnail_absent(self) -> None:
        assert parse_thumbnail({}) is None

    def test_edition_zero_pages_is_unknown(self) -> None:
        edition = parse_volume_edition(OTHER_VOLUME)

        assert edition.publisher == "Bompiani"
        assert edition.published_date == "1980"
        assert edition.page_count is None
        assert edition.language == "it"

    def test_volumes_response(self) -> None:
        assert len(parse_volumes_response(TITLE_SEARCH_RESPONSE)) == 2
        assert parse_volumes_response(EMPTY_RESPONSE) == []
