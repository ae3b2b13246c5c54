# ABOUTME: Loads a source record (with editions and audiobook data) from a JSON document.
# ABOUTME: Keys match the SourceRecord, EditionRecord and AudiobookRecord field names.

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, TypeVar

from bookbridge.errors import SourceFetchError
from bookbridge.metadata.openlibrary_parser import clean_isbn
from bookbridge.metadata.types import AudiobookRecord, EditionRecord, SourceRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NESTED_KEYS = frozenset({"editions", "audiobook", "audiobook_checked"})


def _build(cls: type[T], data: dict[str, Any], skip: frozenset[str] = frozenset()) -> T:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known - skip)
    if unknown:
        logger.warning("Ignoring unknown %s key(s): %s", cls.__name__, ", ".join(unknown))
    return cls(**{k: v for k, v in data.items() if k in known and k not in skip})


def _split_isbn(data: dict[str, Any]) -> dict[str, Any]:
    """Accept a bare "isbn" key and file it under isbn13 or isbn10 by length."""
    data = dict(data)
    isbn = data.pop("isbn", None)
    if isbn:
        isbn = clean_isbn(str(isbn))
        key = "isbn13" if len(isbn) == 13 else "isbn10"
        data.setdefault(key, isbn)
    return data


def record_from_dict(data: dict[str, Any]) -> SourceRecord:
    """Build a SourceRecord from a parsed JSON object.

    An "audiobook" key, even one set to null, marks the audiobook source as
    consulted, so an absent audiobook is distinguished from an unknown one.
    """
    if not data.get("title"):
        raise SourceFetchError("Source record has no title")

    record = _build(SourceRecord, _split_isbn(data), skip=_NESTED_KEYS)
    record.editions = [
        _build(EditionRecord, _split_isbn(edition)) for edition in data.get("editions") or []
    ]
    if "audiobook" in data:
        record.audiobook_checked = True
        if data["audiobook"]:
            record.audiobook = _build(AudiobookRecord, data["audiobook"])
    return record


def load_record(path: Path) -> SourceRecord:
    """Read a source record from a JSON file.

    Raises:
        SourceFetchError: If the file cannot be read or is not a record object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SourceFetchError(f"Cannot read source record from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SourceFetchError(f"Source record in {path} must be a JSON object")
    return record_from_dict(data)
