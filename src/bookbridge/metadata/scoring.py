# ABOUTME: String similarity scoring used to match field names against property names.
# ABOUTME: Tiered: exact, substring, registered keyword, then normalized edit distance.

import re
from collections.abc import Iterable

from rapidfuzz.distance import Levenshtein

# Tier scores, on a 0-100 scale.
_SCORE_EXACT = 100.0
_SCORE_CONTAINS = 80.0
_SCORE_KEYWORD = 70.0

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize_name(value: str) -> str:
    """Lowercase and strip everything that is not a letter or digit."""
    return _NON_ALNUM_RE.sub("", value.lower())


def _edit_similarity(a: str, b: str) -> float:
    """Levenshtein distance converted to a 0-100 similarity."""
    max_len = max(len(a), len(b))
    distance = Levenshtein.distance(a, b)
    return max(0.0, (max_len - distance) / max_len * 100)


def similarity(a: str, b: str, keywords: Iterable[str] = ()) -> float:
    """Score how closely two names match, on a 0-100 scale.

    The first matching tier wins: exact match after normalization (100),
    one name containing the other (80), a keyword registered for ``a``
    overlapping ``b`` (70), otherwise normalized edit distance.
    """
    left = normalize_name(a)
    right = normalize_name(b)
    if not left or not right:
        return 0.0

    if left == right:
        return _SCORE_EXACT

    if left in right or right in left:
        return _SCORE_CONTAINS

    for keyword in keywords:
        normalized = normalize_name(keyword)
        if normalized and (normalized in right or right in normalized):
            return _SCORE_KEYWORD

    return _edit_similarity(left, right)
