# ABOUTME: Notion implementation of the Destination protocol.
# ABOUTME: Builds request bodies for search, schema, page writes, and queries.

import logging
from typing import Any

from bookbridge.mapping.schema import DatabaseSchema
from bookbridge.notion.http import NotionHttpClient, NotionTransport
from bookbridge.notion.parser import (
    DatabaseSummary,
    PageSummary,
    WrittenRecord,
    parse_query_results,
    parse_schema,
    parse_search_results,
    parse_written_record,
)

logger = logging.getLogger(__name__)

_SEARCH_BODY = {
    "filter": {"value": "database", "property": "object"},
    "sort": {"direction": "descending", "timestamp": "last_edited_time"},
}


class NotionDestination:
    """Reads schemas from and writes pages to Notion databases."""

    def __init__(self, http_client: NotionTransport) -> None:
        self._http = http_client

    @classmethod
    def from_token(cls, token: str, **kwargs: Any) -> "NotionDestination":
        return cls(NotionHttpClient(token, **kwargs))

    @property
    def name(self) -> str:
        return "notion"

    def search_databases(self) -> list[DatabaseSummary]:
        """List every database shared with the integration, most recently edited first."""
        data = self._http.request("POST", "/search", dict(_SEARCH_BODY))
        databases = parse_search_results(data)
        logger.debug("Found %d database(s)", len(databases))
        return databases

    def fetch_schema(self, database_id: str) -> DatabaseSchema:
        data = self._http.request("GET", f"/databases/{database_id}")
        return parse_schema(data)

    def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
        icon: dict[str, Any] | None = None,
        children: list[dict[str, Any]] | None = None,
    ) -> WrittenRecord:
        body: dict[str, Any] = {
            "parent": {"type": "database_id", "database_id": database_id},
            "properties": properties,
        }
        if icon:
            body["icon"] = icon
        if children:
            body["children"] = children
        data = self._http.request("POST", "/pages", body)
        record = parse_written_record(data)
        logger.info("Created page %s in database %s", record.id, database_id)
        return record

    def update_page(self, page_id: str, properties: dict[str, Any]) -> WrittenRecord:
        """Overwrite only the given properties of an existing page."""
        data = self._http.request("PATCH", f"/pages/{page_id}", {"properties": properties})
        record = parse_written_record(data)
        logger.info("Updated page %s", record.id)
        return record

    def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        title_property: str | None = None,
    ) -> list[PageSummary]:
        body: dict[str, Any] = {}
        if filter:
            body["filter"] = filter
        data = self._http.request("POST", f"/databases/{database_id}/query", body)
        return parse_query_results(data, title_property)

    def current_user(self) -> dict[str, Any]:
        """Fetch the integration's bot user; useful as a connection test."""
        return self._http.request("GET", "/users/me")
