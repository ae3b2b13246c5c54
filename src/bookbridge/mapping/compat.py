# ABOUTME: Static compatibility table between semantic value kinds and property kinds.
# ABOUTME: Used as a filter when suggesting mappings; never used to rank candidates.

from bookbridge.metadata.types import PropertyKind

COMPATIBILITY: dict[PropertyKind, frozenset[PropertyKind]] = {
    PropertyKind.TITLE: frozenset({PropertyKind.TITLE}),
    PropertyKind.RICH_TEXT: frozenset({PropertyKind.RICH_TEXT, PropertyKind.TITLE}),
    PropertyKind.MULTI_SELECT: frozenset(
        {PropertyKind.MULTI_SELECT, PropertyKind.SELECT, PropertyKind.RICH_TEXT}
    ),
    PropertyKind.SELECT: frozenset(
        {PropertyKind.SELECT, PropertyKind.MULTI_SELECT, PropertyKind.RICH_TEXT}
    ),
    PropertyKind.NUMBER: frozenset({PropertyKind.NUMBER, PropertyKind.RICH_TEXT}),
    PropertyKind.DATE: frozenset({PropertyKind.DATE, PropertyKind.RICH_TEXT}),
    PropertyKind.URL: frozenset({PropertyKind.URL, PropertyKind.RICH_TEXT}),
    PropertyKind.FILES: frozenset({PropertyKind.FILES, PropertyKind.URL, PropertyKind.RICH_TEXT}),
    PropertyKind.CHECKBOX: frozenset({PropertyKind.CHECKBOX}),
}


def is_compatible(value_kind: PropertyKind, property_kind: PropertyKind) -> bool:
    """Whether a value of value_kind may populate a property of property_kind."""
    return property_kind in COMPATIBILITY.get(value_kind, frozenset())


def compatible_kinds(value_kind: PropertyKind) -> frozenset[PropertyKind]:
    return COMPATIBILITY.get(value_kind, frozenset())
