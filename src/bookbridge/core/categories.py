# ABOUTME: Category vocabulary normalization: split, alias, ignore, and merge suggestions.
# ABOUTME: Settings are an explicit value object; the normalizer mutates them via named operations.

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace

from bookbridge.metadata.scoring import similarity

logger = logging.getLogger(__name__)

DEFAULT_ALIASES: dict[str, str] = {
    "sci-fi": "Science Fiction",
    "scifi": "Science Fiction",
    "science fiction": "Science Fiction",
    "sf": "Science Fiction",
    "fantasy fiction": "Fantasy",
    "fiction / fantasy": "Fantasy",
    "young adult fiction": "Young Adult",
    "ya fiction": "Young Adult",
    "ya": "Young Adult",
    "teen fiction": "Young Adult",
    "juvenile fiction": "Children's Fiction",
    "children's books": "Children's Fiction",
    "kids books": "Children's Fiction",
    "mystery & detective": "Mystery",
    "mystery fiction": "Mystery",
    "detective fiction": "Mystery",
    "thriller": "Thriller",
    "suspense": "Thriller",
    "romance fiction": "Romance",
    "love stories": "Romance",
    "historical fiction": "Historical Fiction",
    "historical novel": "Historical Fiction",
    "biography & autobiography": "Biography",
    "biographies": "Biography",
    "autobiography": "Biography",
    "self-help": "Self-Help",
    "self help": "Self-Help",
    "personal development": "Self-Help",
    "business & economics": "Business",
    "business": "Business",
    "economics": "Business",
    "health & fitness": "Health",
    "fitness": "Health",
    "cooking": "Cooking",
    "cookbooks": "Cooking",
    "recipes": "Cooking",
    "travel": "Travel",
    "travel guides": "Travel",
    "guidebooks": "Travel",
    "computers": "Technology",
    "technology": "Technology",
    "programming": "Technology",
    "software": "Technology",
}

# Compound genres that read as one subject and are never split on "&".
PRESERVED_COMPOUNDS = frozenset({"health & fitness", "health & wellness", "home & garden"})

_AMPERSAND_RE = re.compile(r"\s*&\s*")
_SLASH_RE = re.compile(r"\s*/\s*")
_CONJUNCTION_RE = re.compile(r"\s+and\s+", re.IGNORECASE)

# Broad subjects that are only merged inside their predefined group.
_DISTINCT_CATEGORIES = frozenset({
    "fiction", "non-fiction", "nonfiction", "biography", "autobiography",
    "history", "science", "mathematics", "philosophy", "religion",
    "art", "music", "sports", "politics", "economics",
    "magic", "wizards", "dragons", "vampires", "werewolves", "zombies",
    "pirates", "knights", "princesses", "kings", "queens",
    "school", "college", "university", "education",
    "friendship", "family", "love", "death", "war", "peace",
    "animals", "cats", "dogs", "horses", "birds",
    "space", "aliens", "robots", "time travel",
})

_DISTINCT_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"biography", "autobiography", "biographies"}),
    frozenset({"non-fiction", "nonfiction"}),
)

_ABBREVIATION_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"science fiction", "sci-fi", "scifi", "sf"}),
    frozenset({"young adult", "ya", "teen", "teenage"}),
    frozenset({"mystery", "detective", "crime"}),
    frozenset({"self-help", "self help", "personal development"}),
    frozenset({"business", "economics", "finance"}),
    frozenset({"health", "fitness", "wellness"}),
    frozenset({"cooking", "recipes", "cookbooks", "culinary"}),
    frozenset({"travel", "guidebooks", "tourism"}),
    frozenset({"technology", "computers", "programming", "tech"}),
    frozenset({"romance", "love stories", "romantic"}),
    frozenset({"horror", "scary", "frightening"}),
    frozenset({"adventure", "action", "thriller"}),
)

_GEOGRAPHIC_NAMES = (
    "england", "scotland", "wales", "ireland", "france", "germany", "italy", "spain",
    "united states", "america", "canada", "mexico", "brazil", "russia", "china", "japan",
    "india", "australia", "new zealand", "south africa", "egypt", "morocco",
    "europe", "asia", "africa", "north america", "south america", "oceania",
    "middle east", "far east",
    "london", "paris", "new york", "los angeles", "chicago", "boston", "san francisco",
    "toronto", "vancouver", "sydney", "melbourne", "tokyo", "beijing", "mumbai",
    "american", "british", "english", "french", "german", "italian", "spanish",
    "canadian", "australian", "japanese", "chinese", "indian", "european", "asian",
    "african", "latin", "nordic", "scandinavian", "mediterranean",
)

_TEMPORAL_NAMES = (
    "ancient", "medieval", "renaissance", "victorian", "edwardian", "georgian",
    "postmodern", "baroque", "world war", "civil war", "revolutionary war", "cold war",
    "vietnam war", "wwi", "wwii", "ww1", "ww2", "great depression", "industrial revolution",
    "twenties", "thirties", "forties", "fifties", "sixties", "seventies", "eighties", "nineties",
)

_GEOGRAPHIC_RE = re.compile(r"\b(?:" + "|".join(map(re.escape, _GEOGRAPHIC_NAMES)) + r")\b")
_TEMPORAL_RE = re.compile(
    r"\b(?:"
    + "|".join(map(re.escape, _TEMPORAL_NAMES))
    + r"|\d{1,2}(?:st|nd|rd|th) century|\w+teenth century|twentieth century"
    + r"|twenty-first century|\d{3}0s)\b"
)

_COMMON_WORDS_RE = re.compile(r"\b(?:fiction|books?|literature|novel|story|stories)\b")

# Pairs at or above this name similarity are suggested for merging.
_SUGGEST_THRESHOLD = 80.0
_MIN_LENGTH_RATIO = 0.3


@dataclass(frozen=True)
class SplitPolicy:
    """Which separators split a raw category string into several categories."""

    commas: bool = True
    ampersands: bool = True
    slashes: bool = True
    conjunctions: bool = True


@dataclass
class CategorySettings:
    """Persisted category preferences.

    Both maps are keyed on the casefolded original string. aliases values
    are canonical names and are always fixed points of the alias map.
    """

    ignored: set[str] = field(default_factory=set)
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    split_policy: SplitPolicy = field(default_factory=SplitPolicy)


@dataclass
class CategoryEntry:
    """One split category as shown to the user."""

    original: str
    canonical: str
    ignored: bool = False
    mapped_from: str | None = None


@dataclass
class ProcessResult:
    """Output of process(): the selectable set plus bookkeeping for display."""

    processed: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)
    mapped: dict[str, str] = field(default_factory=dict)
    entries: list[CategoryEntry] = field(default_factory=list)


@dataclass(frozen=True)
class MergeSuggestion:
    first: str
    second: str


def format_category(name: str) -> str:
    """Capitalize the first letter of each space-separated word, lowercase the rest."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split(" "))


def is_geographic(category: str) -> bool:
    return _GEOGRAPHIC_RE.search(category.lower()) is not None


def is_temporal(category: str) -> bool:
    return _TEMPORAL_RE.search(category.lower()) is not None


def is_protected(category: str) -> bool:
    """Places and eras are never suggested for merging."""
    return is_geographic(category) or is_temporal(category)


def _strip_common_words(name: str) -> str:
    return " ".join(_COMMON_WORDS_RE.sub("", name).split())


def _same_group(a: str, b: str, groups: Iterable[frozenset[str]]) -> bool:
    return any(a in group and b in group for group in groups)


def are_similar(first: str, second: str) -> bool:
    """Whether two canonical categories look like the same subject."""
    a = first.lower().strip()
    b = second.lower().strip()
    if a == b or is_protected(a) or is_protected(b):
        return False

    if a in _DISTINCT_CATEGORIES or b in _DISTINCT_CATEGORIES:
        return _same_group(a, b, _DISTINCT_GROUPS)
    if _same_group(a, b, _ABBREVIATION_GROUPS):
        return True

    clean_a = _strip_common_words(a)
    clean_b = _strip_common_words(b)
    if not clean_a or not clean_b:
        return False
    if min(len(clean_a), len(clean_b)) / max(len(clean_a), len(clean_b)) < _MIN_LENGTH_RATIO:
        return False

    if _same_group(clean_a, clean_b, _ABBREVIATION_GROUPS):
        return True

    if len(clean_a) > 3 and len(clean_b) > 3:
        return similarity(clean_a, clean_b) >= _SUGGEST_THRESHOLD
    return False


def explain_similarity(first: str, second: str) -> str:
    """Human-readable reason two categories are, or are not, merge candidates."""
    a = first.lower().strip()
    b = second.lower().strip()
    if a == b:
        return "Categories are identical"
    for name in (first, second):
        if is_geographic(name):
            return f'"{name}" is a place and is never suggested for merging'
        if is_temporal(name):
            return f'"{name}" is a time period and is never suggested for merging'
    if are_similar(first, second):
        return "Categories look like the same subject"
    if a in _DISTINCT_CATEGORIES or b in _DISTINCT_CATEGORIES:
        return "One or both categories are broad subjects that stay distinct"
    clean_a = _strip_common_words(a)
    clean_b = _strip_common_words(b)
    if not clean_a or not clean_b:
        return "One category is empty once common words are removed"
    if min(len(clean_a), len(clean_b)) / max(len(clean_a), len(clean_b)) < _MIN_LENGTH_RATIO:
        return "Categories are too different in length"
    return "Categories don't match any similarity pattern"


def split_categories(
    categories: Iterable[str],
    policy: SplitPolicy,
    preserved: Iterable[str] = (),
) -> list[str]:
    """Split raw category strings into individual categories.

    Strings matching a preserved name (case-insensitive) are kept whole.
    Commas split first; then, per policy, ampersands, slashes and " and ".
    Pieces are trimmed and empties dropped.
    """
    keep = {name.casefold() for name in preserved} | PRESERVED_COMPOUNDS

    def split_on(pieces: list[str], pattern: re.Pattern[str]) -> list[str]:
        out: list[str] = []
        for piece in pieces:
            if piece.casefold() in keep:
                out.append(piece)
            else:
                out.extend(pattern.split(piece))
        return out

    result: list[str] = []
    for raw in categories:
        if not raw:
            continue
        text = raw.strip()
        if text.casefold() in keep:
            result.append(text)
            continue
        pieces = [p.strip() for p in text.split(",")] if policy.commas else [text]
        if policy.ampersands:
            pieces = split_on(pieces, _AMPERSAND_RE)
        if policy.slashes:
            pieces = split_on(pieces, _SLASH_RE)
        if policy.conjunctions:
            pieces = split_on(pieces, _CONJUNCTION_RE)
        result.extend(p.strip() for p in pieces if p.strip())
    return result


def _effective_policy(policy: SplitPolicy, audiobook_genres: Sequence[str] | None) -> SplitPolicy:
    # Until audiobook status is known, "&" and "and" may belong to a genre name.
    if audiobook_genres is None:
        return replace(policy, ampersands=False, conjunctions=False)
    return policy


def process_categories(
    raw: Iterable[str],
    settings: CategorySettings,
    audiobook_genres: Sequence[str] | None = None,
) -> ProcessResult:
    """Split, alias and filter raw categories into the selectable canonical set.

    audiobook_genres is None when audiobook status is unknown; ampersand and
    conjunction splitting is then suppressed. Known audiobook genres are kept
    whole. The result is idempotent: processing ``processed`` again returns it.
    """
    targets = {value.casefold(): value for value in settings.aliases.values()}
    preserved = list(audiobook_genres or ()) + list(settings.aliases) + list(targets)
    policy = _effective_policy(settings.split_policy, audiobook_genres)

    result = ProcessResult()
    for original in split_categories(raw, policy, preserved):
        key = original.casefold()
        if key in settings.aliases:
            canonical = settings.aliases[key]
            mapped_from = original if canonical != original else None
        elif key in targets:
            canonical = targets[key]
            mapped_from = None
        else:
            canonical = format_category(original)
            mapped_from = None

        ignored = key in settings.ignored or canonical.casefold() in settings.ignored
        result.entries.append(CategoryEntry(original, canonical, ignored, mapped_from))

        if ignored:
            if original not in result.ignored:
                result.ignored.append(original)
            continue
        if mapped_from is not None:
            result.mapped[original] = canonical
        if canonical not in result.processed:
            result.processed.append(canonical)

    result.processed.sort()
    return result


class CategoryNormalizer:
    """Applies explicit edits to category settings and reads them back.

    The settings object is shared; every mutation is visible to the next
    process() call. on_change is invoked after each mutation so callers can
    persist the settings.
    """

    def __init__(
        self,
        settings: CategorySettings,
        *,
        on_change: Callable[[CategorySettings], None] | None = None,
    ) -> None:
        self.settings = settings
        self._on_change = on_change
        self._reverse: dict[str, list[str]] = {}
        self._rebuild_reverse()

    def process(
        self, raw: Iterable[str], audiobook_genres: Sequence[str] | None = None
    ) -> ProcessResult:
        return process_categories(raw, self.settings, audiobook_genres)

    def ignore(self, original: str) -> bool:
        """Add a category to the ignore set. Returns False if it was already ignored."""
        key = original.strip().casefold()
        if not key or key in self.settings.ignored:
            return False
        self.settings.ignored.add(key)
        self._changed()
        return True

    def unignore(self, original: str) -> bool:
        key = original.strip().casefold()
        if key not in self.settings.ignored:
            return False
        self.settings.ignored.discard(key)
        self._changed()
        return True

    def resolve(self, name: str) -> str:
        """Follow the alias chain from a name to its canonical form."""
        seen: set[str] = set()
        current = name
        while current.casefold() in self.settings.aliases and current.casefold() not in seen:
            seen.add(current.casefold())
            target = self.settings.aliases[current.casefold()]
            if target.casefold() == current.casefold():
                return target
            current = target
        return current

    def merge(self, source: str, target: str) -> str:
        """Alias source to target. Returns the canonical name source now maps to.

        Raises:
            ValueError: If source and target are the same category, or the
                merge would create an alias cycle.
        """
        source = source.strip()
        target = target.strip()
        if not source or not target:
            raise ValueError("Category names must not be empty.")
        if source.casefold() == target.casefold():
            raise ValueError(f"Cannot merge {source!r} into itself.")

        canonical = self.resolve(target)
        if canonical.casefold() == source.casefold():
            raise ValueError(f"Merging {source!r} into {target!r} would create a cycle.")

        source_key = source.casefold()
        aliases = self.settings.aliases
        for key, value in list(aliases.items()):
            if value.casefold() == source_key:
                aliases[key] = canonical
        aliases[source_key] = canonical
        logger.info("Merged category %r into %r", source, canonical)
        self._changed()
        return canonical

    def mapped_from(self, canonical: str) -> list[str]:
        """Originals that alias to a canonical category (its children)."""
        return list(self._reverse.get(canonical.casefold(), ()))

    def unmap(self, category: str, mapped_from: str | None = None) -> list[str]:
        """Remove aliases for a category and return the removed original keys.

        With mapped_from, only that alias is removed. Otherwise an alias keyed
        on the category itself is removed; failing that, every alias that
        points at the category is removed.
        """
        aliases = self.settings.aliases
        if mapped_from is not None:
            removed = [mapped_from.casefold()] if aliases.pop(mapped_from.casefold(), None) else []
        else:
            key = category.casefold()
            target = aliases.get(key)
            if target is not None and target.casefold() != key:
                del aliases[key]
                removed = [key]
            else:
                removed = [k for k, v in aliases.items() if v.casefold() == key]
                for k in removed:
                    del aliases[k]
        if removed:
            self._changed()
        return removed

    def suggest_similar(self, categories: Sequence[str]) -> list[MergeSuggestion]:
        """Pairs of categories that look like the same subject."""
        suggestions: list[MergeSuggestion] = []
        for i, first in enumerate(categories):
            for second in categories[i + 1 :]:
                if are_similar(first, second):
                    suggestions.append(MergeSuggestion(first, second))
        return suggestions

    def _rebuild_reverse(self) -> None:
        reverse: dict[str, list[str]] = {}
        for key, value in self.settings.aliases.items():
            if key != value.casefold():
                reverse.setdefault(value.casefold(), []).append(key)
        self._reverse = reverse

    def _changed(self) -> None:
        self._rebuild_reverse()
        if self._on_change is not None:
            self._on_change(self.settings)


class CategorySelection:
    """The user's selected categories, kept apart from process() output.

    A settings edit re-runs process(); refreshing without reset keeps the
    user's choices for categories that still exist.
    """

    def __init__(self) -> None:
        self._selected: list[str] = []
        self._available: list[str] = []

    @property
    def selected(self) -> list[str]:
        return list(self._selected)

    def refresh(self, result: ProcessResult, *, reset: bool) -> list[str]:
        self._available = list(result.processed)
        if reset:
            self._selected = list(result.processed)
        else:
            self._selected = [c for c in self._selected if c in self._available]
        return self.selected

    def toggle(self, category: str) -> bool:
        """Flip one category. Returns whether it is now selected."""
        if category in self._selected:
            self._selected.remove(category)
            return False
        if category not in self._available:
            return False
        self._selected.append(category)
        self._selected.sort()
        return True

    def select_all(self) -> None:
        self._selected = list(self._available)

    def clear(self) -> None:
        self._selected = []
