# ABOUTME: Canned Google Books API response fixtures for testing.
# ABOUTME: Provides volume search results for an ISBN query and a title/author query.

VOLUME = {
    "id": "8ZkRAQAAIAAJ",
    "volumeInfo": {
        "title": "The Name of the Rose",
        "subtitle": "A Novel",
        "authors": ["Umberto Eco"],
        "publisher": "Harcourt",
        "publishedDate": "1994-09",
        "description": "A mystery set in a medieval Italian monastery.",
        "industryIdentifiers": [
            {"type": "ISBN_10", "identifier": "0156001314"},
            {"type": "ISBN_13", "identifier": "9780156001311"},
        ],
        "pageCount": 536,
        "categories": ["Fiction"],
        "averageRating": 4.0,
        "ratingsCount": 210,
        "imageLinks": {
            "smallThumbnail": "http://books.google.com/books/content?id=8ZkRAQAAIAAJ&zoom=5",
            "thumbnail": "http://books.google.com/books/content?id=8ZkRAQAAIAAJ&zoom=1",
        },
        "language": "en",
    },
}

OTHER_VOLUME = {
    "id": "qL0uAAAAYAAJ",
    "volumeInfo": {
        "title": "Il nome della rosa",
        "authors": ["Umberto Eco"],
        "publisher": "Bompiani",
        "publishedDate": "1980",
        "industryIdentifiers": [{"type": "OTHER", "identifier": "UOM:39015003991093"}],
        "pageCount": 0,
        "language": "it",
    },
}

UNRELATED_VOLUME = {
    "id": "zzzzzzzzzzzz",
    "volumeInfo": {
        "title": "Reading Eco",
        "authors": ["Rocco Capozzi"],
        "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9780253210692"}],
    },
}

# Google sometimes ranks a loosely related volume above the exact ISBN match.
ISBN_SEARCH_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 2,
    "items": [UNRELATED_VOLUME, VOLUME],
}

TITLE_SEARCH_RESPONSE = {
    "kind": "books#volumes",
    "totalItems": 2,
    "items": [VOLUME, OTHER_VOLUME],
}

EMPTY_RESPONSE = {"kind": "books#volumes", "totalItems": 0}
