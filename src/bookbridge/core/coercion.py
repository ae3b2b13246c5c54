# ABOUTME: Coerces metadata values into Notion property payloads, one rule per property kind.
# ABOUTME: Never raises: invalid input degrades to None and the property is left out of the write.

import logging
import math
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlparse

from bookbridge.core.dates import require_date
from bookbridge.errors import CoercionRejected, MappingUnavailable
from bookbridge.mapping.mapper import MappingSet
from bookbridge.metadata.fields import ordered_fields
from bookbridge.metadata.text import to_plain_text
from bookbridge.metadata.types import PropertyKind, SemanticField

logger = logging.getLogger(__name__)

# Notion API limits.
MAX_TEXT_LENGTH = 2000
MAX_OPTION_LENGTH = 100
MAX_OPTIONS = 10

_FALSE_STRINGS = frozenset({"", "false", "no", "0", "off", "n"})

Clock = Callable[[], float]


def _is_empty(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple, set)):
        return not any(not _is_empty(item) for item in raw)
    return False


def _as_text(raw: Any) -> str:
    if isinstance(raw, (list, tuple)):
        return ", ".join(str(item).strip() for item in raw if not _is_empty(item))
    return str(raw).strip()


def _first_present(raw: Any, kind: str) -> Any:
    """The first non-empty item of a list, or raw itself when it is not a list."""
    if isinstance(raw, (list, tuple)):
        item = next((item for item in raw if not _is_empty(item)), None)
        if item is None:
            raise CoercionRejected(kind, raw, "no usable value")
        return item
    return raw


def _clean_option(raw: Any) -> str:
    """Options cannot contain commas; replace them and apply the name limit."""
    text = str(raw).replace(",", " -")
    return text[:MAX_OPTION_LENGTH].strip()


def _text_payload(kind: str, content: str) -> dict[str, Any]:
    return {kind: [{"text": {"content": content}}]}


def _coerce_title(raw: Any, clock: Clock) -> dict[str, Any]:
    content = _as_text(raw)[:MAX_TEXT_LENGTH]
    if not content:
        raise CoercionRejected("title", raw, "empty title")
    return _text_payload("title", content)


def _coerce_rich_text(raw: Any, clock: Clock) -> dict[str, Any]:
    content = to_plain_text(_as_text(raw))[:MAX_TEXT_LENGTH]
    if not content:
        raise CoercionRejected("rich_text", raw, "no text after stripping markup")
    return _text_payload("rich_text", content)


def _coerce_multi_select(raw: Any, clock: Clock) -> dict[str, Any]:
    items = raw if isinstance(raw, (list, tuple)) else [raw]
    names: list[str] = []
    for item in items:
        if _is_empty(item):
            continue
        name = _clean_option(item)
        if name and name not in names:
            names.append(name)
    if not names:
        raise CoercionRejected("multi_select", raw, "no usable options")
    return {"multi_select": [{"name": name} for name in names[:MAX_OPTIONS]]}


def _coerce_select(raw: Any, clock: Clock) -> dict[str, Any]:
    name = _clean_option(_first_present(raw, "select"))
    if not name:
        raise CoercionRejected("select", raw, "empty option")
    return {"select": {"name": name}}


def _coerce_number(raw: Any, clock: Clock) -> dict[str, Any]:
    if isinstance(raw, bool):
        raise CoercionRejected("number", raw, "boolean is not a number")
    try:
        number = float(raw)
    except (TypeError, ValueError) as exc:
        raise CoercionRejected("number", raw, "not numeric") from exc
    if not math.isfinite(number):
        raise CoercionRejected("number", raw, "not finite")
    return {"number": number}


def _coerce_date(raw: Any, clock: Clock) -> dict[str, Any]:
    return {"date": {"start": require_date(raw).value}}


def _http_url(raw: Any) -> str:
    url = str(raw).strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise CoercionRejected("url", raw, "not an absolute http(s) URL")
    return url


def _coerce_url(raw: Any, clock: Clock) -> dict[str, Any]:
    return {"url": _http_url(_first_present(raw, "url"))}


def _coerce_files(raw: Any, clock: Clock) -> dict[str, Any]:
    url = _http_url(_first_present(raw, "files"))
    # Unique name per write so the destination does not serve a cached cover.
    name = f"cover_{int(clock() * 1000)}"
    return {"files": [{"type": "external", "name": name, "external": {"url": url}}]}


def _coerce_checkbox(raw: Any, clock: Clock) -> dict[str, Any]:
    if isinstance(raw, str):
        return {"checkbox": raw.strip().lower() not in _FALSE_STRINGS}
    return {"checkbox": bool(raw)}


_COERCERS: dict[PropertyKind, Callable[[Any, Clock], dict[str, Any]]] = {
    PropertyKind.TITLE: _coerce_title,
    PropertyKind.RICH_TEXT: _coerce_rich_text,
    PropertyKind.MULTI_SELECT: _coerce_multi_select,
    PropertyKind.SELECT: _coerce_select,
    PropertyKind.NUMBER: _coerce_number,
    PropertyKind.DATE: _coerce_date,
    PropertyKind.URL: _coerce_url,
    PropertyKind.FILES: _coerce_files,
    PropertyKind.CHECKBOX: _coerce_checkbox,
    PropertyKind.OTHER: _coerce_rich_text,
}


def coerce_value(
    raw: Any, kind: PropertyKind, *, clock: Clock = time.time
) -> dict[str, Any] | None:
    """Shape a raw value into the payload a property of the given kind expects.

    Returns None when the value is empty or cannot fit the kind; the caller
    must then leave the property out of the write entirely.
    """
    if _is_empty(raw):
        return None
    try:
        return _COERCERS[kind](raw, clock)
    except CoercionRejected as exc:
        logger.debug("Value rejected for %s: %s", kind.value, exc.reason)
        return None


def cover_icon(url: str | None) -> dict[str, Any] | None:
    """Page icon payload pointing at an external cover image."""
    if not url:
        return None
    try:
        return {"type": "external", "external": {"url": _http_url(url)}}
    except CoercionRejected:
        return None


def build_properties(
    record: dict[SemanticField, Any],
    mapping: MappingSet,
    *,
    clock: Clock = time.time,
) -> dict[str, dict[str, Any]]:
    """Build the properties payload for every mapped field with a usable value.

    Fields are visited in priority order. A field whose property was already
    filled by a higher-priority field loses, and the collision is logged.
    """
    properties: dict[str, dict[str, Any]] = {}
    filled_by: dict[str, SemanticField] = {}
    fields = ordered_fields()
    fields += [m.field for m in mapping if m.field not in fields]
    for field in fields:
        value = record.get(field)
        if value is None:
            continue
        try:
            property_name = mapping.property_for(field)
        except MappingUnavailable:
            logger.debug("Skipping unmapped field %s", field.value)
            continue

        if property_name in filled_by:
            logger.warning(
                "Property %r already filled by %s; dropping %s",
                property_name,
                filled_by[property_name].value,
                field.value,
            )
            continue

        mapped = mapping.get(field)
        assert mapped is not None
        payload = coerce_value(value, mapped.property_kind, clock=clock)
        if payload is None:
            logger.info("Omitting %s: value does not fit %s", field.value, mapped.property_kind.value)
            continue
        properties[property_name] = payload
        filled_by[property_name] = field
    return properties
