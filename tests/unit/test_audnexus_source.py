# ABOUTME: Unit tests for AudnexusSource.
# ABOUTME: Uses a FakeHttpClient to test ASIN lookup, catalog search fallthrough, and failures.

import pytest

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.audnexus import AudnexusSource
from tests.conftest import FakeHttpClient
from tests.fixtures.audnexus_responses import (
    ASIN,
    BOOK_RESPONSE,
    CATALOG_RESPONSE,
    CATALOG_RESPONSE_EMPTY,
    CHAPTERS_RESPONSE,
)

SEQUEL_BOOK = {
    "asin": "B0SEQUEL02",
    "title": "Project Hail Mary 2",
    "authors": [{"name": "Andy Weir"}],
}


def _not_found(status: int = 404) -> SourceFetchError:
    return SourceFetchError(f"HTTP {status} from url", {"status": status, "url": "url"})


class TestFetchByAsin:
    """Tests for AudnexusSource.fetch_by_asin."""

    def test_fetches_book_and_chapters(self) -> None:
        client = FakeHttpClient({"/chapters": CHAPTERS_RESPONSE, "/books/": BOOK_RESPONSE})

        audiobook = AudnexusSource(client, region="uk").fetch_by_asin(ASIN.lower())

        assert audiobook is not None
        assert audiobook.asin == ASIN
        assert audiobook.chapters == 3
        assert client.request_log == [
            (f"https://api.audnex.us/books/{ASIN}", {"region": "uk"}),
            (f"https://api.audnex.us/books/{ASIN}/chapters", {"region": "uk"}),
        ]

    @pytest.mark.parametrize("status", [404, 500])
    def test_unavailable_asin_is_none(self, status: int) -> None:
        client = FakeHttpClient({"/books/": _not_found(status)})
        assert AudnexusSource(client).fetch_by_asin(ASIN) is None

    def test_service_failure_raises(self) -> None:
        client = FakeHttpClient({"/books/": _not_found(503)})
        with pytest.raises(SourceFetchError):
            AudnexusSource(client).fetch_by_asin(ASIN)

    def test_transport_failure_raises(self) -> None:
        client = FakeHttpClient({"/books/": SourceFetchError("Request failed", {"status": None})})
        with pytest.raises(SourceFetchError):
            AudnexusSource(client).fetch_by_asin(ASIN)

    def test_missing_chapters_keeps_book(self) -> None:
        client = FakeHttpClient({"/chapters": _not_found(), "/books/": BOOK_RESPONSE})

        audiobook = AudnexusSource(client).fetch_by_asin(ASIN)

        assert audiobook is not None
        assert audiobook.chapters is None
        assert audiobook.duration_hours == 16.2

    def test_invalid_asin_makes_no_request(self) -> None:
        client = FakeHttpClient()
        assert AudnexusSource(client).fetch_by_asin("not-an-asin") is None
        assert client.request_log == []


class TestSearch:
    """Tests for AudnexusSource.search."""

    def test_takes_best_catalog_match(self) -> None:
        client = FakeHttpClient(
            {
                "/catalog/products": CATALOG_RESPONSE,
                "/chapters": CHAPTERS_RESPONSE,
                "/books/": BOOK_RESPONSE,
            }
        )

        audiobook = AudnexusSource(client).search("Project Hail Mary (Unabridged)", "Andy Weir")

        assert audiobook is not None
        assert audiobook.asin == ASIN
        catalog_params = [params for url, params in client.request_log if "catalog" in url]
        assert [p["keywords"] for p in catalog_params] == [
            "Project Hail Mary Andy Weir",
            "Project Hail Mary",
        ]
        assert client.urls()[2] == f"https://api.audnex.us/books/{ASIN}"

    def test_falls_through_to_next_candidate(self) -> None:
        client = FakeHttpClient(
            {
                "/catalog/products": CATALOG_RESPONSE,
                f"/books/{ASIN}": _not_found(),
                "/books/B0SEQUEL02/chapters": {},
                "/books/B0SEQUEL02": SEQUEL_BOOK,
            }
        )

        audiobook = AudnexusSource(client).search("Project Hail Mary", "Andy Weir")

        assert audiobook is not None
        assert audiobook.asin == "B0SEQUEL02"

    def test_no_hits_is_none(self) -> None:
        client = FakeHttpClient({"/catalog/products": CATALOG_RESPONSE_EMPTY})
        assert AudnexusSource(client).search("Project Hail Mary", "Andy Weir") is None

    def test_no_author_skips_search(self) -> None:
        client = FakeHttpClient()
        assert AudnexusSource(client).search("Project Hail Mary", None) is None
        assert client.request_log == []

    def test_catalog_failure_raises(self) -> None:
        client = FakeHttpClient({"/catalog/products": _not_found(503)})
        with pytest.raises(SourceFetchError):
            AudnexusSource(client).search("Project Hail Mary", "Andy Weir")

    def test_max_tries_limits_fetches(self) -> None:
        client = FakeHttpClient({"/catalog/products": CATALOG_RESPONSE, "/books/": _not_found()})

        assert AudnexusSource(client, max_tries=1).search("Project Hail Mary", "Andy Weir") is None

        assert [u for u in client.urls() if "audnex.us" in u] == [
            f"https://api.audnex.us/books/{ASIN}"
        ]
