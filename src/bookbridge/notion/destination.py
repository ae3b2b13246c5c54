# ABOUTME: Destination protocol defining the contract for the database service bookbridge writes to.
# ABOUTME: NotionDestination implements it; tests substitute in-memory fakes.

from typing import Any, Protocol, runtime_checkable

from bookbridge.mapping.schema import DatabaseSchema
from bookbridge.notion.parser import DatabaseSummary, PageSummary, WrittenRecord


@runtime_checkable
class Destination(Protocol):
    """Protocol for a typed-property database service.

    Implementations raise DestinationError subclasses on failure and never
    retry on their own.
    """

    def search_databases(self) -> list[DatabaseSummary]: ...

    def fetch_schema(self, database_id: str) -> DatabaseSchema: ...

    def create_page(
        self,
        database_id: str,
        properties: dict[str, Any],
        icon: dict[str, Any] | None = None,
        children: list[dict[str, Any]] | None = None,
    ) -> WrittenRecord: ...

    def update_page(self, page_id: str, properties: dict[str, Any]) -> WrittenRecord: ...

    def query_database(
        self,
        database_id: str,
        filter: dict[str, Any] | None = None,
        title_property: str | None = None,
    ) -> list[PageSummary]: ...
