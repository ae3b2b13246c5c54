# ABOUTME: Audiobook source backed by Audnexus, with Audible's catalog search to find ASINs.
# ABOUTME: Fetches one audiobook by ASIN, or searches by title and author and takes the best match.

import logging

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.audnexus_parser import (
    CatalogProduct,
    clean_search_term,
    is_asin,
    parse_book,
    parse_catalog_products,
    rank_products,
)
from bookbridge.metadata.http import HttpClient
from bookbridge.metadata.types import AudiobookRecord

logger = logging.getLogger(__name__)

_AUDNEXUS_BASE = "https://api.audnex.us"
_AUDIBLE_CATALOG = "https://api.audible.com/1.0/catalog/products"
_CATALOG_RESPONSE_GROUPS = "contributors,product_attrs,product_desc,media,rating"
_CATALOG_RESULTS = 25

# Audnexus answers 500 for ASINs that exist only in another region.
_NOT_AVAILABLE_STATUSES = frozenset({404, 500})


class AudnexusSource:
    """Audiobook metadata from the Audnexus API.

    Audnexus has no search endpoint, so search() asks Audible's public catalog
    for candidate ASINs and fetches the best-scoring ones from Audnexus until
    one resolves.

    Both lookups return None when the audiobook does not exist and raise
    SourceFetchError when the services could not be asked, so callers can
    tell "no audiobook" from "unknown".
    """

    def __init__(self, http_client: HttpClient, *, region: str = "us", max_tries: int = 5) -> None:
        self._http = http_client
        self._region = region
        self._max_tries = max_tries

    @property
    def name(self) -> str:
        return "audnexus"

    def fetch_by_asin(self, asin: str) -> AudiobookRecord | None:
        """Fetch one audiobook. A missing chapter listing only loses the chapter count.

        Raises:
            SourceFetchError: If Audnexus fails for a reason other than not
                having the ASIN.
        """
        asin = asin.strip().upper()
        if not is_asin(asin):
            logger.warning("Not an ASIN: %r", asin)
            return None
        params = {"region": self._region}
        try:
            book = self._http.get(f"{_AUDNEXUS_BASE}/books/{asin}", params=params)
        except SourceFetchError as exc:
            if exc.details.get("status") in _NOT_AVAILABLE_STATUSES:
                logger.info("Audnexus has no %s in region %s", asin, self._region)
                return None
            raise

        try:
            chapters = self._http.get(f"{_AUDNEXUS_BASE}/books/{asin}/chapters", params=params)
        except SourceFetchError as exc:
            logger.info("No chapter listing for %s: %s", asin, exc)
            chapters = None

        return parse_book(book, chapters)

    def search(self, title: str, author: str | None) -> AudiobookRecord | None:
        """Find the audiobook edition of a title. Returns None without an author.

        Raises:
            SourceFetchError: If every catalog query failed.
        """
        if not author:
            logger.debug("No author for %r; skipping audiobook search", title)
            return None

        hits = self._catalog_hits(title, author)
        for product in rank_products(hits, title, author, self._max_tries):
            logger.debug("Trying %s %r (score %d)", product.asin, product.title, product.score)
            audiobook = self.fetch_by_asin(product.asin)
            if audiobook is not None:
                return audiobook

        logger.info("No audiobook found for %r by %s", title, author)
        return None

    def _catalog_hits(self, title: str, author: str) -> list[CatalogProduct]:
        clean_title = clean_search_term(title)
        queries = (f"{clean_title} {clean_search_term(author)}", clean_title)
        products: list[CatalogProduct] = []
        failure: SourceFetchError | None = None
        for keywords in queries:
            try:
                data = self._http.get(
                    _AUDIBLE_CATALOG,
                    params={
                        "keywords": keywords,
                        "response_groups": _CATALOG_RESPONSE_GROUPS,
                        "num_results": str(_CATALOG_RESULTS),
                        "products_sort_by": "Relevance",
                    },
                )
            except SourceFetchError as exc:
                logger.warning("Audible catalog search failed for %r: %s", keywords, exc)
                failure = exc
                continue
            products.extend(parse_catalog_products(data))
        if failure is not None and not products:
            raise failure
        return products
