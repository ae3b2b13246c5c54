# ABOUTME: Parsing functions for Notion API JSON responses.
# ABOUTME: Converts databases, pages, and query results into bookbridge data structures.

from dataclasses import dataclass, field
from typing import Any

from bookbridge.mapping.schema import DatabaseSchema, TargetProperty
from bookbridge.metadata.types import PropertyKind


@dataclass
class DatabaseSummary:
    """A database as listed by search."""

    id: str
    title: str
    url: str | None = None
    created_time: str | None = None
    last_edited_time: str | None = None
    properties: dict[str, TargetProperty] = field(default_factory=dict)


@dataclass
class WrittenRecord:
    """A page as returned by a create or update call."""

    id: str
    url: str | None = None
    created_time: str | None = None
    last_edited_time: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class PageSummary:
    """A page from a database query, with its title pulled out for display."""

    id: str
    url: str | None = None
    title: str = ""
    properties: dict[str, Any] = field(default_factory=dict)


def plain_text(fragments: list[dict[str, Any]] | None) -> str:
    """Concatenate the plain_text of a Notion rich text array."""
    if not fragments:
        return ""
    return "".join(fragment.get("plain_text", "") for fragment in fragments)


def parse_properties(data: dict[str, Any]) -> dict[str, TargetProperty]:
    """Parse a database "properties" object into TargetProperty instances."""
    properties: dict[str, TargetProperty] = {}
    for name, spec in (data or {}).items():
        type_name = spec.get("type", "")
        properties[name] = TargetProperty(
            name=name,
            kind=PropertyKind.from_wire(type_name),
            id=spec.get("id"),
            config=spec.get(type_name) or {},
        )
    return properties


def parse_database_summary(data: dict[str, Any]) -> DatabaseSummary:
    return DatabaseSummary(
        id=data["id"],
        title=plain_text(data.get("title")) or "Untitled",
        url=data.get("url"),
        created_time=data.get("created_time"),
        last_edited_time=data.get("last_edited_time"),
        properties=parse_properties(data.get("properties", {})),
    )


def parse_search_results(data: dict[str, Any]) -> list[DatabaseSummary]:
    """Parse a /search response, keeping only database objects."""
    return [
        parse_database_summary(item)
        for item in data.get("results", [])
        if item.get("object") == "database"
    ]


def parse_schema(data: dict[str, Any]) -> DatabaseSchema:
    """Parse a GET /databases/{id} response into a DatabaseSchema."""
    return DatabaseSchema(
        id=data["id"],
        title=plain_text(data.get("title")) or "Untitled",
        url=data.get("url"),
        properties=parse_properties(data.get("properties", {})),
    )


def parse_written_record(data: dict[str, Any]) -> WrittenRecord:
    return WrittenRecord(
        id=data["id"],
        url=data.get("url"),
        created_time=data.get("created_time"),
        last_edited_time=data.get("last_edited_time"),
        properties=data.get("properties", {}),
    )


def page_title(properties: dict[str, Any], preferred: str | None = None) -> str:
    """Extract a display title from page properties.

    Reads the preferred property first (title or rich text), then falls back
    to whichever property is of type title.
    """
    if preferred and preferred in properties:
        prop = properties[preferred]
        text = plain_text(prop.get("title") or prop.get("rich_text"))
        if text:
            return text
    for prop in properties.values():
        if prop.get("type") == "title":
            return plain_text(prop.get("title"))
    return ""


def parse_query_results(
    data: dict[str, Any], title_property: str | None = None
) -> list[PageSummary]:
    """Parse a database query response into PageSummary instances."""
    pages: list[PageSummary] = []
    for item in data.get("results", []):
        properties = item.get("properties", {})
        pages.append(
            PageSummary(
                id=item["id"],
                url=item.get("url"),
                title=page_title(properties, title_property) or "Untitled",
                properties=properties,
            )
        )
    return pages
