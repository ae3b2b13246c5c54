# ABOUTME: Unit tests for GoogleBooksSource.
# ABOUTME: Uses a query-keyed fake client to test ISBN lookup, edition gathering, and failures.

from typing import Any

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.googlebooks import GoogleBooksSource
from bookbridge.metadata.http import HttpClient
from tests.fixtures.googlebooks_responses import (
    EMPTY_RESPONSE,
    ISBN_SEARCH_RESPONSE,
    TITLE_SEARCH_RESPONSE,
)


class FakeVolumesClient:
    """Returns canned responses keyed on the prefix of the q parameter."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self._responses = responses
        self.params: list[dict[str, str]] = []

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        params = params or {}
        self.params.append(params)
        for prefix, response in self._responses.items():
            if params.get("q", "").startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        return EMPTY_RESPONSE


def _client(**overrides: Any) -> FakeVolumesClient:
    responses: dict[str, Any] = {"isbn:": ISBN_SEARCH_RESPONSE, "intitle:": TITLE_SEARCH_RESPONSE}
    responses.update(overrides)
    return FakeVolumesClient(responses)


class TestGoogleBooksSourceBasics:
    def test_fake_client_satisfies_protocol(self) -> None:
        assert isinstance(FakeVolumesClient({}), HttpClient)

    def test_name_property(self) -> None:
        assert GoogleBooksSource(FakeVolumesClient({})).name == "googlebooks"


class TestFetchRecord:
    """Tests for GoogleBooksSource.fetch_record."""

    def test_picks_volume_matching_isbn(self) -> None:
        record = GoogleBooksSource(_client()).fetch_record("978-0-15-600131-1")

        assert record is not None
        assert record.title == "The Name of the Rose: A Novel"
        assert record.isbn13 == "9780156001311"

    def test_queries(self) -> None:
        client = _client()

        GoogleBooksSource(client).fetch_record("978-0-15-600131-1")

        assert [p["q"] for p in client.params] == [
            "isbn:9780156001311",
            "intitle:The Name of the Rose inauthor:Umberto Eco",
        ]
        assert all("key" not in p for p in client.params)

    def test_api_key_is_sent(self) -> None:
        client = _client()
        GoogleBooksSource(client, api_key="abc").fetch_record("9780156001311")
        assert all(p["key"] == "abc" for p in client.params)

    def test_other_volumes_become_editions(self) -> None:
        record = GoogleBooksSource(_client()).fetch_record("9780156001311")

        assert record is not None
        assert [e.publisher for e in record.editions] == ["Bompiani"]

    def test_not_found(self) -> None:
        client = _client(**{"isbn:": EMPTY_RESPONSE})
        assert GoogleBooksSource(client).fetch_record("9999999999") is None
        assert len(client.params) == 1

    def test_search_failure_is_not_found(self) -> None:
        client = _client(**{"isbn:": SourceFetchError("HTTP 503 from url", {"status": 503})})
        assert GoogleBooksSource(client).fetch_record("9780156001311") is None

    def test_edition_search_failure_keeps_record(self) -> None:
        client = _client(**{"intitle:": SourceFetchError("HTTP 503 from url", {"status": 503})})

        record = GoogleBooksSource(client).fetch_record("9780156001311")

        assert record is not None
        assert record.editions == []
