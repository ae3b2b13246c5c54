# ABOUTME: Open Library bibliographic source.
# ABOUTME: Looks up a book by ISBN and gathers its work-level data and alternate editions.

import logging
from dataclasses import replace

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.http import HttpClient
from bookbridge.metadata.openlibrary_parser import (
    clean_isbn,
    parse_author_name,
    parse_description,
    parse_edition_author_keys,
    parse_editions_response,
    parse_isbn_response,
    parse_work_author_keys,
)
from bookbridge.metadata.types import EditionRecord, SourceRecord

logger = logging.getLogger(__name__)

_OL_BASE = "https://openlibrary.org"
_EDITION_LIMIT = 10
_SUBJECT_LIMIT = 15


class OpenLibrarySource:
    """Bibliographic source backed by the Open Library API.

    The ISBN edition is the original record. Its work supplies the
    description, subjects and first publication date, and the work's other
    editions become alternate candidates. Uses dependency-injected
    HttpClient for testability.
    """

    def __init__(self, http_client: HttpClient, *, edition_limit: int = _EDITION_LIMIT) -> None:
        self._http = http_client
        self._edition_limit = edition_limit

    @property
    def name(self) -> str:
        return "openlibrary"

    def fetch_record(self, isbn: str) -> SourceRecord | None:
        """Look up a book by ISBN and enrich it from its work and authors.

        Returns None when the ISBN lookup itself fails; enrichment failures
        are logged and leave the record as far as it got.
        """
        isbn = clean_isbn(isbn)
        try:
            data = self._http.get(f"{_OL_BASE}/isbn/{isbn}.json")
        except SourceFetchError as exc:
            logger.warning("ISBN lookup failed for %s: %s", isbn, exc)
            return None

        record = parse_isbn_response(data)
        author_keys = parse_edition_author_keys(data)

        works_key = record.identifiers.get("openlibrary_work")
        if works_key:
            record, work_author_keys = self._enrich_from_works(record, works_key)
            author_keys = author_keys or work_author_keys
            editions = self.fetch_editions(works_key, self._edition_limit)
            record.editions = [e for e in editions if not _same_edition(e, record)]

        authors = self._resolve_authors(author_keys)
        if authors:
            record.authors = authors
        logger.debug(
            "Fetched %r with %d alternate edition(s)", record.title, len(record.editions)
        )
        return record

    def fetch_editions(self, works_key: str, limit: int = _EDITION_LIMIT) -> list[EditionRecord]:
        """Fetch up to limit editions of a work; [] if the request fails."""
        try:
            data = self._http.get(
                f"{_OL_BASE}{works_key}/editions.json", params={"limit": str(limit)}
            )
        except SourceFetchError as exc:
            logger.warning("Editions lookup failed for %s: %s", works_key, exc)
            return []
        return parse_editions_response(data)[:limit]

    def _enrich_from_works(
        self, record: SourceRecord, works_key: str
    ) -> tuple[SourceRecord, list[str]]:
        try:
            works_data = self._http.get(f"{_OL_BASE}{works_key}.json")
        except SourceFetchError as exc:
            logger.warning("Works lookup failed for %s: %s", works_key, exc)
            return record, []

        subjects = [s for s in works_data.get("subjects", []) if isinstance(s, str)]
        record = replace(
            record,
            description=record.description or parse_description(works_data),
            categories=record.categories or subjects[:_SUBJECT_LIMIT],
            original_published_date=works_data.get("first_publish_date"),
        )
        return record, parse_work_author_keys(works_data)

    def _resolve_authors(self, author_keys: list[str]) -> list[str]:
        authors: list[str] = []
        for author_key in author_keys:
            try:
                author_data = self._http.get(f"{_OL_BASE}{author_key}.json")
            except SourceFetchError:
                continue
            authors.append(parse_author_name(author_data))
        return authors


def _same_edition(edition: EditionRecord, record: SourceRecord) -> bool:
    if edition.isbn13 and edition.isbn13 == record.isbn13:
        return True
    return bool(edition.isbn10 and edition.isbn10 == record.isbn10)
