# ABOUTME: Parsing and match scoring for Audnexus and Audible catalog JSON responses.
# ABOUTME: Converts book and chapter payloads into AudiobookRecord and ranks catalog search hits.

import re
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz

from bookbridge.metadata.types import AudiobookRecord

AUDIBLE_PRODUCT_URL = "https://www.audible.com/pd/{asin}"

_ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")
_PARENTHETICAL_RE = re.compile(r"\(.*?\)")
_SEARCH_JUNK_RE = re.compile(r"[^\w\s'-]")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"\d+")

# Catalog hits at or below this score are never tried.
MIN_MATCH_SCORE = 10


@dataclass
class CatalogProduct:
    """One hit from the Audible catalog search."""

    asin: str
    title: str
    authors: list[str] = field(default_factory=list)
    narrators: list[str] = field(default_factory=list)
    score: int = 0


def is_asin(value: str) -> bool:
    return bool(_ASIN_RE.match(value.strip().upper()))


def clean_search_term(term: str | None) -> str:
    """Drop parentheticals like "(Unabridged)" and punctuation for a catalog query."""
    if not term:
        return ""
    text = _PARENTHETICAL_RE.sub("", term)
    text = _SEARCH_JUNK_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", _NON_WORD_RE.sub(" ", text.lower())).strip()


def _names(entries: Any) -> list[str]:
    if not isinstance(entries, list):
        return []
    return [e["name"] for e in entries if isinstance(e, dict) and e.get("name")]


def _hours(minutes: float) -> float:
    return round(minutes / 60, 1)


def _duration_hours(book: dict[str, Any], chapters: dict[str, Any] | None) -> float | None:
    """Runtime in hours, from the book first and the chapter listing second."""
    if book.get("runtimeLengthMin"):
        return _hours(float(book["runtimeLengthMin"]))
    if book.get("runtimeLengthSec"):
        return _hours(float(book["runtimeLengthSec"]) / 60)
    if chapters:
        if chapters.get("runtimeLengthMs"):
            return _hours(float(chapters["runtimeLengthMs"]) / 60000)
        if chapters.get("runtimeLengthSec"):
            return _hours(float(chapters["runtimeLengthSec"]) / 60)
    return None


def _rating(value: Any) -> float | None:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return rating if rating > 0 else None


def parse_genres(book: dict[str, Any]) -> list[str]:
    """Genre names only. Audnexus also lists finer "tag" entries, which are skipped."""
    genres = book.get("genres")
    if not isinstance(genres, list):
        return []
    return [
        g["name"]
        for g in genres
        if isinstance(g, dict) and g.get("name") and g.get("type", "genre") == "genre"
    ]


def parse_book(
    book: dict[str, Any], chapters: dict[str, Any] | None = None
) -> AudiobookRecord | None:
    """Parse an Audnexus /books/{asin} response, with its optional chapter listing.

    Returns None when the payload carries no ASIN.
    """
    asin = book.get("asin")
    if not asin:
        return None
    chapter_list = (chapters or {}).get("chapters")
    return AudiobookRecord(
        title=book.get("title"),
        authors=_names(book.get("authors")),
        narrators=_names(book.get("narrators")),
        publisher=book.get("publisherName"),
        published_date=book.get("releaseDate"),
        description=book.get("description"),
        summary=book.get("summary"),
        image=book.get("image"),
        duration_hours=_duration_hours(book, chapters),
        chapters=len(chapter_list) if isinstance(chapter_list, list) else None,
        asin=asin,
        url=AUDIBLE_PRODUCT_URL.format(asin=asin),
        rating=_rating(book.get("rating")),
        genres=parse_genres(book),
        language=book.get("language"),
    )


def score_product(product: CatalogProduct, title: str, author: str) -> int:
    """Score a catalog hit against the wanted title and author, roughly 0-100.

    Title similarity counts for up to 60 and the best author similarity for
    up to 40. A numbered title (a sequel) loses 10 when none was asked for;
    when one was asked for, a matching number gains 10 and any other loses 5.
    """
    wanted_title = _normalize(title)
    hit_title = _normalize(product.title)
    score = fuzz.token_set_ratio(wanted_title, hit_title) * 0.6

    wanted_author = _normalize(author)
    author_scores = [
        fuzz.token_sort_ratio(wanted_author, _normalize(name)) for name in product.authors
    ]
    score += max(author_scores, default=0.0) * 0.4

    wanted_number = _NUMBER_RE.search(wanted_title)
    hit_number = _NUMBER_RE.search(hit_title)
    if wanted_number is None:
        if hit_number is not None:
            score -= 10
    elif hit_number is not None and hit_number.group() == wanted_number.group():
        score += 10
    else:
        score -= 5
    return round(score)


def parse_catalog_products(data: dict[str, Any]) -> list[CatalogProduct]:
    """Parse an Audible /catalog/products search response."""
    products = []
    for item in data.get("products", []):
        if not isinstance(item, dict) or not item.get("asin"):
            continue
        products.append(
            CatalogProduct(
                asin=item["asin"],
                title=item.get("title") or "",
                authors=_names(item.get("authors")),
                narrators=_names(item.get("narrators")),
            )
        )
    return products


def rank_products(
    products: list[CatalogProduct], title: str, author: str, limit: int = 5
) -> list[CatalogProduct]:
    """Score, drop weak hits, keep the best score per ASIN, and return the top few."""
    best: dict[str, CatalogProduct] = {}
    for product in products:
        product.score = score_product(product, title, author)
        if product.score <= MIN_MATCH_SCORE:
            continue
        current = best.get(product.asin)
        if current is None or product.score > current.score:
            best[product.asin] = product
    ranked = sorted(best.values(), key=lambda p: p.score, reverse=True)
    return ranked[:limit]
