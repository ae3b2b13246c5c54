# ABOUTME: Shared pytest fixtures for bookbridge tests.
# ABOUTME: Provides sample source records, settings, a canned source client, and an in-memory destination.

from pathlib import Path
from typing import Any

import pytest

from bookbridge.core.categories import CategoryNormalizer
from bookbridge.core.reconcile import ReconciliationController
from bookbridge.core.settings import Settings
from bookbridge.errors import DestinationError
from bookbridge.mapping.schema import DatabaseSchema
from bookbridge.metadata.types import AudiobookRecord, EditionRecord, SourceRecord
from bookbridge.notion.parser import (
    DatabaseSummary,
    PageSummary,
    WrittenRecord,
    parse_schema,
)
from tests.fixtures.notion_responses import DATABASE_RESPONSE


class FakeHttpClient:
    """Fake source HTTP client that returns canned responses based on URL patterns.

    Patterns are tried in insertion order, so list more specific ones first.
    A response that is an exception is raised instead of returned.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self._responses = responses or {}
        self.request_log: list[tuple[str, dict[str, str] | None]] = []

    def get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        self.request_log.append((url, params))
        for pattern, response in self._responses.items():
            if pattern in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return {}

    def urls(self) -> list[str]:
        return [url for url, _params in self.request_log]


class FakeDestination:
    """In-memory destination that records every call.

    matches is what query_database returns; set query_error or write_error
    to make those calls fail.
    """

    def __init__(self, schema_data: dict[str, Any] | None = None) -> None:
        self.schema: DatabaseSchema = parse_schema(schema_data or DATABASE_RESPONSE)
        self.pages: dict[str, dict[str, Any]] = {}
        self.matches: list[PageSummary] = []
        self.calls: list[tuple[Any, ...]] = []
        self.query_error: DestinationError | None = None
        self.write_error: DestinationError | None = None

    def search_databases(self) -> list[DatabaseSummary]:
        self.calls.append(("search_databases",))
        return [
            DatabaseSummary(
                id=self.schema.id,
                title=self.schema.title,
                url=self.schema.url,
                last_edited_time="2024-03-01T12:30:00.000Z",
                properties=self.schema.properties,
            )
        ]

    def fetch_schema(self, database_id: str) -> DatabaseSchema:
        self.calls.append(("fetch_schema", database_id))
        return self.schema

    def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
        icon: dict[str, Any] | None = None,
        children: list[dict[str, Any]] | None = None,
    ) -> WrittenRecord:
        self.calls.append(("create_page", database_id, properties, icon))
        if self.write_error is not None:
            raise self.write_error
        page_id = f"page-{len(self.pages) + 1}"
        self.pages[page_id] = dict(properties)
        return WrittenRecord(
            id=page_id, url=f"https://www.notion.so/{page_id}", properties=properties
        )

    def update_page(self, page_id: str, properties: dict[str, Any]) -> WrittenRecord:
        self.calls.append(("update_page", page_id, properties))
        if self.write_error is not None:
            raise self.write_error
        self.pages.setdefault(page_id, {}).update(properties)
        return WrittenRecord(
            id=page_id, url=f"https://www.notion.so/{page_id}", properties=properties
        )

    def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        title_property: str | None = None,
    ) -> list[PageSummary]:
        self.calls.append(("query_database", database_id, filter))
        if self.query_error is not None:
            raise self.query_error
        return list(self.matches)

    def count(self, name: str) -> int:
        """Number of recorded calls to the named method."""
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_record() -> SourceRecord:
    """A book with two alternate editions and a checked-but-absent audiobook."""
    return SourceRecord(
        title="The Name of the Rose",
        authors=["Umberto Eco"],
        isbn13="9780156001311",
        isbn10="0156001314",
        description="A mystery set in a medieval Italian monastery.",
        categories=["Fiction", "Mystery & Detective", "Historical Fiction"],
        published_date="1994-09-01",
        original_published_date="1980",
        publisher="Harcourt",
        page_count=536,
        thumbnail="https://covers.openlibrary.org/b/isbn/9780156001311-L.jpg",
        language="eng",
        editions=[
            EditionRecord(
                title="The Name of the Rose",
                publisher="Secker & Warburg",
                published_date="1983",
                page_count=502,
                isbn10="0436144501",
            ),
            EditionRecord(
                title="Il nome della rosa",
                publisher="Bompiani",
                published_date="1980",
                language="ita",
            ),
        ],
        audiobook_checked=True,
    )


@pytest.fixture
def audiobook_record() -> SourceRecord:
    """A book whose audiobook came out before the print edition's listed date."""
    return SourceRecord(
        title="Project Hail Mary",
        authors=["Andy Weir"],
        isbn13="9780593135204",
        categories=["Fiction", "Science Fiction & Fantasy"],
        published_date="2021-05-04",
        publisher="Ballantine Books",
        thumbnail="https://covers.openlibrary.org/b/isbn/9780593135204-L.jpg",
        audiobook=AudiobookRecord(
            title="Project Hail Mary",
            authors=["Andy Weir"],
            narrators=["Ray Porter"],
            publisher="Audible Studios",
            published_date="2021-05-03",
            summary="<p>A lone astronaut must save the earth.</p>",
            image="https://m.media-amazon.com/images/I/hail-mary.jpg",
            duration_hours=16.2,
            chapters=33,
            asin="B08G9PRS1K",
            url="https://www.audible.com/pd/B08G9PRS1K",
            rating=4.9,
            genres=["Science Fiction & Fantasy"],
        ),
        audiobook_checked=True,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def fake_destination() -> FakeDestination:
    return FakeDestination()


@pytest.fixture
def controller(fake_destination: FakeDestination, settings: Settings) -> ReconciliationController:
    """Controller wired to the fake destination with a fixed clock."""
    normalizer = CategoryNormalizer(settings.categories)
    return ReconciliationController(
        fake_destination, settings, normalizer, clock=lambda: 1_700_000_000.0
    )
