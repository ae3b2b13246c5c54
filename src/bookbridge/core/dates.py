# ABOUTME: Resolves freeform publication dates into ISO calendar dates.
# ABOUTME: Ordered strategy chain; year-only results are flagged rather than re-parsed later.

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from bookbridge.errors import DateUnresolvable

logger = logging.getLogger(__name__)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_BARE_YEAR_RE = re.compile(r"^\d{4}$")
_ANY_YEAR_RE = re.compile(r"\d{4}")

# Textual formats accepted by the generic parse, tried in order.
_TEXT_FORMATS = (
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %Y",
    "%b %Y",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%Y-%m",
)
_MONTH_FORMATS = frozenset({"%B %Y", "%b %Y", "%Y-%m"})


@dataclass(frozen=True)
class ResolvedDate:
    """A resolved calendar date.

    value is always a full YYYY-MM-DD string. year_only marks a synthesized
    January 1st and month_only a synthesized first of the month, so display
    code never shows a day the input did not have.
    """

    value: str
    year_only: bool = False
    strategy: str = "iso"
    month_only: bool = False

    @property
    def year(self) -> int:
        return int(self.value[:4])

    @property
    def display(self) -> str:
        """YYYY for year-only dates, YYYY-MM for month-only, otherwise YYYY-MM-DD."""
        if self.year_only:
            return self.value[:4]
        if self.month_only:
            return self.value[:7]
        return self.value


def _valid(year: int, month: int, day: int) -> bool:
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def _iso(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month:02d}-{day:02d}"


def _try_iso(text: str) -> ResolvedDate | None:
    if not _ISO_DATE_RE.match(text):
        return None
    year, month, day = (int(part) for part in text.split("-"))
    if not _valid(year, month, day):
        return None
    return ResolvedDate(text, strategy="iso")


def _parse_generic(text: str) -> tuple[date, str | None] | None:
    """Parse text, returning the date and the strptime format that matched."""
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(candidate).date(), None
    except ValueError:
        pass
    for fmt in _TEXT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date(), fmt
        except ValueError:
            continue
    return None


def _try_generic(text: str) -> ResolvedDate | None:
    result = _parse_generic(text)
    if result is None:
        return None
    parsed, fmt = result
    prefix = _ISO_PREFIX_RE.match(text)
    if prefix:
        year, month, day = (int(part) for part in prefix.groups())
        if _valid(year, month, day):
            return ResolvedDate(_iso(year, month, day), strategy="generic")
    return ResolvedDate(
        _iso(parsed.year, parsed.month, parsed.day),
        strategy="generic",
        month_only=fmt in _MONTH_FORMATS,
    )


def _try_month_first(text: str) -> ResolvedDate | None:
    match = _NUMERIC_DATE_RE.match(text)
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    if not _valid(year, month, day):
        return None
    return ResolvedDate(_iso(year, month, day), strategy="month_first")


def _try_day_first(text: str) -> ResolvedDate | None:
    match = _NUMERIC_DATE_RE.match(text)
    if not match:
        return None
    first, second, year = (int(part) for part in match.groups())
    if not (first > 12 or second <= 12):
        return None
    if not _valid(year, second, first):
        return None
    return ResolvedDate(_iso(year, second, first), strategy="day_first")


def _try_bare_year(text: str) -> ResolvedDate | None:
    if not _BARE_YEAR_RE.match(text) or int(text) < 1:
        return None
    return ResolvedDate(f"{text}-01-01", year_only=True, strategy="year")


def _try_any_year(text: str) -> ResolvedDate | None:
    for match in _ANY_YEAR_RE.finditer(text):
        if int(match.group()) >= 1:
            return ResolvedDate(f"{match.group()}-01-01", year_only=True, strategy="embedded_year")
    return None


_STRATEGIES = (
    _try_iso,
    _try_generic,
    _try_month_first,
    _try_day_first,
    _try_bare_year,
    _try_any_year,
)


def resolve_date(raw: object) -> ResolvedDate | None:
    """Resolve a freeform date into a ResolvedDate, or None if no year is present.

    Strategies run in order and the first success wins:
      1. YYYY-MM-DD, used verbatim.
      2. Generic parse (ISO datetimes, "May 10, 2023", "10 May 2023", ...).
         Inputs that start with an ISO date keep those components verbatim.
      3. M/D/Y or M-D-Y.
      4. D/M/Y, when the first field cannot be a month or the second can.
      5. A bare year, as January 1st flagged year-only.
      6. The first 4-digit run anywhere in the text, flagged year-only.
    """
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip()
    if not text:
        return None
    for strategy in _STRATEGIES:
        resolved = strategy(text)
        if resolved is not None:
            return resolved
    logger.debug("No date recoverable from %r", text)
    return None


def require_date(raw: object) -> ResolvedDate:
    """Like resolve_date, but raise DateUnresolvable instead of returning None."""
    resolved = resolve_date(raw)
    if resolved is None:
        raise DateUnresolvable(raw)
    return resolved


def is_complete_date(value: str | None) -> bool:
    """A complete date has a separator or is longer than a bare year."""
    if not value:
        return False
    text = str(value).strip()
    return "-" in text or "/" in text or len(text) > 4


def format_display(resolved: ResolvedDate) -> str:
    """Render for people: "May 10, 2023", "May 2023", or "2023" for year-only dates."""
    if resolved.year_only:
        return str(resolved.year)
    parsed = date.fromisoformat(resolved.value)
    if resolved.month_only:
        return f"{parsed.strftime('%b')} {parsed.year}"
    return f"{parsed.strftime('%b')} {parsed.day:02d}, {parsed.year}"
