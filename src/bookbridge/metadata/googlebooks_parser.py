# ABOUTME: Parsing functions for Google Books API volume responses.
# ABOUTME: Converts volumeInfo payloads into SourceRecord and EditionRecord.

from typing import Any

from bookbridge.metadata.types import EditionRecord, SourceRecord

# Largest first.
_IMAGE_SIZES = ("extraLarge", "large", "medium", "small", "thumbnail", "smallThumbnail")


def parse_identifiers(info: dict[str, Any]) -> tuple[str | None, str | None]:
    """(isbn13, isbn10) from industryIdentifiers."""
    isbn13 = isbn10 = None
    for ident in info.get("industryIdentifiers", []):
        kind = ident.get("type")
        value = ident.get("identifier")
        if kind == "ISBN_13" and not isbn13:
            isbn13 = value
        elif kind == "ISBN_10" and not isbn10:
            isbn10 = value
    return isbn13, isbn10


def parse_thumbnail(info: dict[str, Any]) -> str | None:
    """The largest image link, forced to https."""
    links = info.get("imageLinks") or {}
    url = next((links[size] for size in _IMAGE_SIZES if links.get(size)), None)
    if url and url.startswith("http:"):
        url = "https:" + url[len("http:") :]
    return url


def _page_count(info: dict[str, Any]) -> int | None:
    pages = info.get("pageCount")
    return pages if isinstance(pages, int) and pages > 0 else None


def parse_volume(item: dict[str, Any]) -> SourceRecord:
    """Parse one volume into the original record."""
    info = item.get("volumeInfo", {})
    isbn13, isbn10 = parse_identifiers(info)
    identifiers = {"google_books": item["id"]} if item.get("id") else {}
    title = info.get("title", "Unknown")
    if info.get("subtitle"):
        title = f"{title}: {info['subtitle']}"
    return SourceRecord(
        title=title,
        authors=list(info.get("authors", [])),
        isbn13=isbn13,
        isbn10=isbn10,
        description=info.get("description"),
        categories=list(info.get("categories", [])),
        published_date=info.get("publishedDate"),
        publisher=info.get("publisher"),
        page_count=_page_count(info),
        thumbnail=parse_thumbnail(info),
        language=info.get("language"),
        average_rating=info.get("averageRating"),
        ratings_count=info.get("ratingsCount"),
        identifiers=identifiers,
    )


def parse_volume_edition(item: dict[str, Any]) -> EditionRecord:
    info = item.get("volumeInfo", {})
    isbn13, isbn10 = parse_identifiers(info)
    return EditionRecord(
        title=info.get("title"),
        authors=list(info.get("authors", [])),
        publisher=info.get("publisher"),
        published_date=info.get("publishedDate"),
        page_count=_page_count(info),
        isbn13=isbn13,
        isbn10=isbn10,
        description=info.get("description"),
        thumbnail=parse_thumbnail(info),
        language=info.get("language"),
        categories=list(info.get("categories", [])),
    )


def parse_volumes_response(data: dict[str, Any]) -> list[dict[str, Any]]:
    """The volume items of a search response; [] when nothing matched."""
    return [item for item in data.get("items", []) if isinstance(item, dict)]
