# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts edition, works, and author payloads into SourceRecord and EditionRecord.

import re
from typing import Any

from bookbridge.metadata.types import EditionRecord, SourceRecord

_COVERS_BASE_URL = "https://covers.openlibrary.org/b/isbn"
_ISBN_CLEAN_RE = re.compile(r"[\s-]")


def clean_isbn(isbn: str) -> str:
    """Strip spaces and hyphens from an ISBN."""
    return _ISBN_CLEAN_RE.sub("", isbn)


def build_cover_url(isbn: str, size: str = "L") -> str:
    """Build an Open Library cover image URL for a given ISBN.

    Args:
        isbn: The ISBN to look up cover art for.
        size: Image size: "S" (small), "M" (medium), or "L" (large).
    """
    return f"{_COVERS_BASE_URL}/{isbn}-{size}.jpg"


def _first(values: list[Any] | None) -> Any:
    return values[0] if values else None


def _language(data: dict[str, Any]) -> str | None:
    languages = data.get("languages", [])
    if not languages:
        return None
    lang_key = languages[0].get("key", "")
    return lang_key.rsplit("/", 1)[-1] if "/" in lang_key else lang_key or None


def _page_count(data: dict[str, Any]) -> int | None:
    pages = data.get("number_of_pages")
    if isinstance(pages, int) and pages > 0:
        return pages
    return None


def parse_description(data: dict[str, Any]) -> str | None:
    """Extract a description from an edition or works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    desc = data.get("description")
    if desc is None:
        return None
    if isinstance(desc, str):
        return desc
    if isinstance(desc, dict):
        return desc.get("value")
    return None


def parse_isbn_response(data: dict[str, Any]) -> SourceRecord:
    """Parse an Open Library ISBN endpoint response into a SourceRecord.

    The ISBN endpoint returns edition-level data with fields like
    title, publishers, isbn_13, languages, works, etc. Authors come back as
    keys only and are resolved separately.
    """
    title = data.get("title", "Unknown")
    subtitle = data.get("subtitle")
    if subtitle:
        title = f"{title}: {subtitle}"

    isbn13 = _first(data.get("isbn_13"))
    isbn10 = _first(data.get("isbn_10"))

    identifiers: dict[str, str] = {}
    if data.get("key"):
        identifiers["openlibrary_edition"] = data["key"]
    works = data.get("works", [])
    if works and works[0].get("key"):
        identifiers["openlibrary_work"] = works[0]["key"]

    cover_isbn = isbn13 or isbn10
    return SourceRecord(
        title=title,
        isbn13=isbn13,
        isbn10=isbn10,
        description=parse_description(data),
        categories=list(data.get("subjects", [])),
        published_date=data.get("publish_date"),
        publisher=_first(data.get("publishers")),
        page_count=_page_count(data),
        thumbnail=build_cover_url(cover_isbn) if cover_isbn else None,
        language=_language(data),
        identifiers=identifiers,
    )


def parse_edition_entry(data: dict[str, Any]) -> EditionRecord:
    """Parse one entry of a works editions listing."""
    isbn13 = _first(data.get("isbn_13"))
    isbn10 = _first(data.get("isbn_10"))
    cover_isbn = isbn13 or isbn10
    return EditionRecord(
        title=data.get("title"),
        publisher=_first(data.get("publishers")),
        published_date=data.get("publish_date"),
        page_count=_page_count(data),
        isbn13=isbn13,
        isbn10=isbn10,
        description=parse_description(data),
        thumbnail=build_cover_url(cover_isbn) if cover_isbn else None,
        language=_language(data),
        categories=list(data.get("subjects", [])),
    )


def parse_editions_response(data: dict[str, Any]) -> list[EditionRecord]:
    return [parse_edition_entry(entry) for entry in data.get("entries", [])]


def parse_work_author_keys(data: dict[str, Any]) -> list[str]:
    """Author keys from a works response, which nests them as [{author: {key}}]."""
    keys = []
    for entry in data.get("authors", []):
        key = entry.get("author", {}).get("key", "")
        if key:
            keys.append(key)
    return keys


def parse_edition_author_keys(data: dict[str, Any]) -> list[str]:
    return [entry["key"] for entry in data.get("authors", []) if entry.get("key")]


def parse_author_name(data: dict[str, Any]) -> str:
    """Extract the author name from an Open Library Author response."""
    return data.get("name") or data.get("personal_name") or "Unknown"
