# ABOUTME: Reconciliation session state machine: effective record, duplicate check, decision, write.
# ABOUTME: The controller parks a session on a duplicate until the user picks replace, keep-both, or cancel.

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bookbridge.core.categories import CategoryNormalizer, CategorySelection, ProcessResult
from bookbridge.core.coercion import Clock, build_properties, cover_icon
from bookbridge.core.settings import Settings
from bookbridge.core.sources import (
    CandidateSource,
    FieldSelection,
    available_sources,
    build_effective_record,
    raw_categories,
)
from bookbridge.errors import DestinationError, SessionStateError
from bookbridge.mapping.mapper import MappingSet, suggest_mapping
from bookbridge.mapping.schema import DatabaseSchema
from bookbridge.metadata.types import PropertyKind, SemanticField, SourceRecord
from bookbridge.notion.destination import Destination
from bookbridge.notion.parser import WrittenRecord

logger = logging.getLogger(__name__)

_SEARCHABLE_KINDS = {PropertyKind.TITLE: "title", PropertyKind.RICH_TEXT: "rich_text"}
_ISBN_FIELDS = (SemanticField.ISBN13, SemanticField.ISBN, SemanticField.ISBN10)


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    DUPLICATE = "duplicate"
    UNIQUE = "unique"
    CANCELLED = "cancelled"
    REPLACING = "replacing"
    KEEPING_BOTH = "keeping_both"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.FAILED})


class Decision(str, Enum):
    CANCEL = "cancel"
    REPLACE = "replace"
    KEEP_BOTH = "keep_both"


_DECISION_STATES = {
    Decision.CANCEL: SessionState.CANCELLED,
    Decision.REPLACE: SessionState.REPLACING,
    Decision.KEEP_BOTH: SessionState.KEEPING_BOTH,
}


@dataclass
class DuplicateMatch:
    """An existing destination record whose identity overlaps the effective record."""

    record_id: str
    url: str | None
    title: str


@dataclass
class WriteResult:
    """Outcome of a write() call.

    action is "created", "updated", "pending" (parked on a duplicate) or
    "cancelled". record is None when nothing was written.
    """

    state: SessionState
    record: WrittenRecord | None = None
    action: str = "created"


@dataclass
class ReconciliationSession:
    """Everything about one book being integrated into one database."""

    database_id: str
    schema: DatabaseSchema
    record: SourceRecord
    mapping: MappingSet
    selection: FieldSelection = field(default_factory=FieldSelection)
    category_selection: CategorySelection = field(default_factory=CategorySelection)
    categories: ProcessResult = field(default_factory=ProcessResult)
    state: SessionState = SessionState.UNKNOWN
    duplicate: DuplicateMatch | None = None
    decision: Decision | None = None
    error: DestinationError | None = None
    _checked_key: tuple | None = field(default=None, repr=False)


class ReconciliationController:
    """Drives reconciliation sessions against a destination.

    The controller owns no per-session state; every operation takes the
    session it acts on. Settings and the category normalizer are shared
    across sessions, so a category edit in one session shows up in the next
    refresh_categories() of any session.
    """

    def __init__(
        self,
        destination: Destination,
        settings: Settings,
        normalizer: CategoryNormalizer,
        *,
        clock: Clock = time.time,
    ) -> None:
        self.destination = destination
        self.settings = settings
        self.normalizer = normalizer
        self._clock = clock

    def open_session(
        self,
        database_id: str,
        record: SourceRecord,
        mapping: MappingSet | None = None,
    ) -> ReconciliationSession:
        """Fetch the schema and start a session for one record.

        The mapping is the one given, else the one saved for this database,
        else a fresh suggestion from the schema's properties.
        """
        schema = self.destination.fetch_schema(database_id)
        if mapping is None:
            saved = self.settings.saved_mappings.get(database_id)
            if saved:
                mapping = MappingSet.from_dict(saved, schema)
                logger.debug("Using saved mapping for %s (%d fields)", database_id, len(mapping))
            else:
                mapping = suggest_mapping(schema.property_list())
                logger.debug("Suggested %d mapping(s) for %s", len(mapping), database_id)

        session = ReconciliationSession(
            database_id=database_id, schema=schema, record=record, mapping=mapping
        )
        self.refresh_categories(session, reset=True)
        return session

    def load_record(self, session: ReconciliationSession, record: SourceRecord) -> None:
        """Swap in a new record; source choices and the duplicate verdict are discarded."""
        self._require_open(session)
        session.record = record
        session.selection.clear()
        self._reset_identity(session)
        self.refresh_categories(session, reset=True)

    def select_source(
        self, session: ReconciliationSession, field: SemanticField, source: CandidateSource
    ) -> None:
        self._require_open(session)
        session.selection.choose(field, source)
        self._invalidate_verdict(session)

    def available_sources(
        self, session: ReconciliationSession, field: SemanticField
    ) -> list[CandidateSource]:
        return available_sources(session.record, field)

    def assign_mapping(
        self, session: ReconciliationSession, field: SemanticField, property_name: str
    ) -> None:
        """Map a field onto a property by explicit user choice."""
        self._require_open(session)
        prop = session.schema.get(property_name)
        if prop is None:
            raise KeyError(f"No property named {property_name!r} in database {session.database_id}")
        session.mapping.assign(field, prop)
        self._invalidate_verdict(session)

    def refresh_categories(
        self, session: ReconciliationSession, *, reset: bool = False
    ) -> ProcessResult:
        record = session.record
        session.categories = self.normalizer.process(
            raw_categories(record), record.audiobook_genres
        )
        session.category_selection.refresh(session.categories, reset=reset)
        return session.categories

    def toggle_category(self, session: ReconciliationSession, category: str) -> bool:
        """Flip one processed category in or out of what gets written.

        Matches the name case-insensitively. Returns whether it is now selected.
        """
        self._require_open(session)
        wanted = category.strip().casefold()
        for name in session.categories.processed:
            if name.casefold() == wanted:
                return session.category_selection.toggle(name)
        logger.debug("No category %r to toggle in %s", category, session.database_id)
        return False

    def effective_record(self, session: ReconciliationSession) -> dict[SemanticField, Any]:
        """Resolve every field to one value, with categories from the user's selection."""
        effective = build_effective_record(
            session.record,
            session.selection,
            self.settings.field_defaults,
            prefer_earlier_audiobook_date=self.settings.prefer_earlier_audiobook_date,
        )
        effective[SemanticField.CATEGORIES] = session.category_selection.selected
        return effective

    def build_properties(self, session: ReconciliationSession) -> dict[str, dict[str, Any]]:
        return build_properties(
            self.effective_record(session), session.mapping, clock=self._clock
        )

    def check_duplicate(self, session: ReconciliationSession) -> SessionState:
        """Look for an existing record with the same ISBN or title.

        Re-checking with unchanged identity returns the cached verdict without
        querying the destination again.
        """
        self._require_open(session)
        effective = self.effective_record(session)
        key, conditions = self._identity(session, effective)

        if (
            session.state in (SessionState.DUPLICATE, SessionState.UNIQUE)
            and session._checked_key == key
        ):
            return session.state

        session.state = SessionState.CHECKING
        session.duplicate = None
        session.decision = None

        if not conditions:
            logger.debug("No searchable identity for %s; treating as unique", session.database_id)
            session.state = SessionState.UNIQUE
            session._checked_key = key
            return session.state

        title_prop = session.schema.title_property
        try:
            matches = self.destination.query_database(
                session.database_id,
                {"or": conditions},
                title_prop.name if title_prop else None,
            )
        except DestinationError:
            session.state = SessionState.UNKNOWN
            session._checked_key = None
            raise

        if matches:
            first = matches[0]
            session.duplicate = DuplicateMatch(record_id=first.id, url=first.url, title=first.title)
            session.state = SessionState.DUPLICATE
            logger.info("Found existing record %s (%s)", first.id, first.title)
        else:
            session.state = SessionState.UNIQUE
        session._checked_key = key
        return session.state

    def resolve(self, session: ReconciliationSession, decision: Decision) -> SessionState:
        """Apply the user's decision to a session parked on a duplicate."""
        if session.state is not SessionState.DUPLICATE:
            raise SessionStateError(
                f"Cannot resolve a session in state {session.state.value}",
                {"state": session.state.value, "decision": decision.value},
            )
        session.decision = decision
        session.state = _DECISION_STATES[decision]
        return session.state

    def write(self, session: ReconciliationSession) -> WriteResult:
        """Create or update the destination record according to the session state.

        Raises:
            SessionStateError: If the session already completed or failed.
            DestinationError: If the destination rejects the write; the session
                moves to failed and keeps the error.
        """
        self._require_open(session)
        if session.state is SessionState.UNKNOWN:
            self.check_duplicate(session)

        if session.state is SessionState.DUPLICATE:
            return WriteResult(state=session.state, action="pending")
        if session.state is SessionState.CANCELLED:
            return WriteResult(state=session.state, action="cancelled")
        if session.state is SessionState.CHECKING:
            raise SessionStateError("Duplicate check still in progress")

        properties = self.build_properties(session)
        try:
            if session.state is SessionState.REPLACING:
                assert session.duplicate is not None
                record = self.destination.update_page(session.duplicate.record_id, properties)
                action = "updated"
            else:
                icon = None
                if self.settings.use_cover_as_icon:
                    icon = cover_icon(self.effective_record(session).get(SemanticField.THUMBNAIL))
                record = self.destination.create_page(session.database_id, properties, icon=icon)
                action = "created"
        except DestinationError as exc:
            session.state = SessionState.FAILED
            session.error = exc
            logger.error("Write to %s failed: %s", session.database_id, exc)
            raise

        session.state = SessionState.COMPLETED
        return WriteResult(state=session.state, record=record, action=action)

    def _identity(
        self, session: ReconciliationSession, effective: dict[SemanticField, Any]
    ) -> tuple[tuple, list[dict[str, Any]]]:
        # First ISBN variant that has both a value and a searchable property.
        isbn, isbn_prop = None, None
        for isbn_field in _ISBN_FIELDS:
            value = str(effective.get(isbn_field) or "").strip()
            prop = self._searchable_property(session, isbn_field)
            if value and prop is not None:
                isbn, isbn_prop = value, prop
                break
        title = str(effective.get(SemanticField.TITLE) or "").strip() or None
        title_prop = self._searchable_property(session, SemanticField.TITLE)

        conditions: list[dict[str, Any]] = []
        for text, prop in ((isbn, isbn_prop), (title, title_prop)):
            if text and prop is not None:
                name, wire = prop
                conditions.append({"property": name, wire: {"contains": text}})

        key = (
            isbn,
            title,
            isbn_prop[0] if isbn_prop else None,
            title_prop[0] if title_prop else None,
        )
        return key, conditions

    @staticmethod
    def _searchable_property(
        session: ReconciliationSession, field: SemanticField
    ) -> tuple[str, str] | None:
        mapped = session.mapping.get(field)
        if mapped is None or mapped.property_kind not in _SEARCHABLE_KINDS:
            return None
        return mapped.property_name, _SEARCHABLE_KINDS[mapped.property_kind]

    @staticmethod
    def _require_open(session: ReconciliationSession) -> None:
        if session.state in TERMINAL_STATES:
            raise SessionStateError(
                f"Session is {session.state.value}; start a new one",
                {"state": session.state.value},
            )

    @staticmethod
    def _reset_identity(session: ReconciliationSession) -> None:
        session.state = SessionState.UNKNOWN
        session.duplicate = None
        session.decision = None
        session.error = None
        session._checked_key = None

    def _invalidate_verdict(self, session: ReconciliationSession) -> None:
        """Forget the verdict if an edit could change the record's identity."""
        if session.state in (SessionState.DUPLICATE, SessionState.UNIQUE):
            key, _ = self._identity(session, self.effective_record(session))
            if key != session._checked_key:
                self._reset_identity(session)
