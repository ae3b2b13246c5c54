# ABOUTME: Google Books bibliographic source.
# ABOUTME: Looks up a book by ISBN; other volumes of the same work become alternate editions.

import logging

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.googlebooks_parser import (
    parse_identifiers,
    parse_volume,
    parse_volume_edition,
    parse_volumes_response,
)
from bookbridge.metadata.http import HttpClient
from bookbridge.metadata.openlibrary_parser import clean_isbn
from bookbridge.metadata.types import SourceRecord

logger = logging.getLogger(__name__)

_VOLUMES_URL = "https://www.googleapis.com/books/v1/volumes"
_MAX_RESULTS = 10


class GoogleBooksSource:
    """Bibliographic source backed by the Google Books volumes API.

    The volume whose ISBN matches is the original record. A second title and
    author search gathers other volumes of the work as alternate editions.
    The API key is optional; without one Google applies a shared quota.
    """

    def __init__(self, http_client: HttpClient, *, api_key: str | None = None) -> None:
        self._http = http_client
        self._api_key = api_key

    @property
    def name(self) -> str:
        return "googlebooks"

    def fetch_record(self, isbn: str) -> SourceRecord | None:
        isbn = clean_isbn(isbn)
        items = self._search(f"isbn:{isbn}")
        if not items:
            return None

        item = next(
            (i for i in items if isbn in parse_identifiers(i.get("volumeInfo", {}))), items[0]
        )
        record = parse_volume(item)

        if record.authors:
            work_title = record.title.split(":")[0].strip()
            others = self._search(f"intitle:{work_title} inauthor:{record.authors[0]}")
            seen = {item.get("id")}
            for other in others:
                if other.get("id") in seen:
                    continue
                seen.add(other.get("id"))
                record.editions.append(parse_volume_edition(other))
        logger.debug("Fetched %r with %d alternate edition(s)", record.title, len(record.editions))
        return record

    def _search(self, query: str) -> list[dict]:
        params = {
            "q": query,
            "printType": "books",
            "projection": "full",
            "maxResults": str(_MAX_RESULTS),
        }
        if self._api_key:
            params["key"] = self._api_key
        try:
            data = self._http.get(_VOLUMES_URL, params=params)
        except SourceFetchError as exc:
            logger.warning("Google Books search failed for %r: %s", query, exc)
            return []
        return parse_volumes_response(data)
