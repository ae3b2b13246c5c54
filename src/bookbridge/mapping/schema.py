# ABOUTME: Read-only view of a destination database schema.
# ABOUTME: TargetProperty and DatabaseSchema are fetched fresh for every session.

from dataclasses import dataclass, field
from typing import Any

from bookbridge.metadata.types import PropertyKind


@dataclass(frozen=True)
class TargetProperty:
    """A named, typed slot in the destination schema."""

    name: str
    kind: PropertyKind
    id: str | None = None
    config: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass
class DatabaseSchema:
    """A destination database and its properties, keyed by property name."""

    id: str
    title: str = ""
    url: str | None = None
    properties: dict[str, TargetProperty] = field(default_factory=dict)

    def get(self, name: str) -> TargetProperty | None:
        return self.properties.get(name)

    def property_list(self) -> list[TargetProperty]:
        """Properties in the order the destination reported them."""
        return list(self.properties.values())

    @property
    def title_property(self) -> TargetProperty | None:
        """The database's title property; Notion guarantees exactly one."""
        for prop in self.properties.values():
            if prop.kind is PropertyKind.TITLE:
                return prop
        return None
