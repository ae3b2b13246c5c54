# ABOUTME: Suggests semantic-field to destination-property mappings and holds user edits.
# ABOUTME: Greedy, priority-ordered, threshold-gated assignment keeps mappings one-to-one.

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

from bookbridge.errors import MappingUnavailable
from bookbridge.mapping.compat import is_compatible
from bookbridge.mapping.schema import DatabaseSchema, TargetProperty
from bookbridge.metadata.fields import FIELD_SPECS, FieldSpec
from bookbridge.metadata.scoring import similarity
from bookbridge.metadata.types import PropertyKind, SemanticField

logger = logging.getLogger(__name__)

# A suggestion must score strictly above this to be kept.
_ACCEPT_THRESHOLD = 50.0
_EXACT_KIND_BONUS = 10.0
_MAX_SCORE = 100.0

Scorer = Callable[..., float]


@dataclass
class FieldMapping:
    """One semantic field mapped onto one destination property."""

    field: SemanticField
    property_name: str
    property_kind: PropertyKind
    confidence: int
    user_defined: bool = False


class MappingSet:
    """The session's current field mappings.

    Starts from a suggestion and is then edited by the user. Holds at most
    one field per property: assigning a property that another field already
    claims releases it from that field.
    """

    def __init__(self, mappings: Iterable[FieldMapping] = ()) -> None:
        self._by_field: dict[SemanticField, FieldMapping] = {}
        for mapping in mappings:
            self._claim(mapping)

    def __iter__(self) -> Iterator[FieldMapping]:
        return iter(self._by_field.values())

    def __len__(self) -> int:
        return len(self._by_field)

    def __contains__(self, field: SemanticField) -> bool:
        return field in self._by_field

    def get(self, field: SemanticField) -> FieldMapping | None:
        return self._by_field.get(field)

    def property_for(self, field: SemanticField) -> str:
        """Return the property name mapped for a field.

        Raises:
            MappingUnavailable: If the field has no mapping.
        """
        mapping = self._by_field.get(field)
        if mapping is None:
            raise MappingUnavailable(field.value)
        return mapping.property_name

    def field_for(self, property_name: str) -> SemanticField | None:
        for mapping in self._by_field.values():
            if mapping.property_name == property_name:
                return mapping.field
        return None

    def assign(self, field: SemanticField, prop: TargetProperty) -> FieldMapping:
        """Record a user edit. User edits always win over suggestions."""
        mapping = FieldMapping(
            field=field,
            property_name=prop.name,
            property_kind=prop.kind,
            confidence=100,
            user_defined=True,
        )
        self._claim(mapping)
        return mapping

    def clear(self, field: SemanticField) -> None:
        self._by_field.pop(field, None)

    def to_dict(self) -> dict[str, str]:
        """Serialize as {field value: property name} for the settings store."""
        return {m.field.value: m.property_name for m in self._by_field.values()}

    @classmethod
    def from_dict(cls, data: dict[str, str], schema: DatabaseSchema) -> "MappingSet":
        """Rebuild a saved mapping against a freshly fetched schema.

        Entries whose field is unknown or whose property no longer exists
        are dropped.
        """
        mappings: list[FieldMapping] = []
        for field_name, property_name in data.items():
            try:
                field = SemanticField(field_name)
            except ValueError:
                logger.warning("Ignoring saved mapping for unknown field %r", field_name)
                continue
            prop = schema.get(property_name)
            if prop is None:
                logger.warning(
                    "Saved mapping %s -> %r dropped: property not in schema",
                    field_name,
                    property_name,
                )
                continue
            mappings.append(
                FieldMapping(
                    field=field,
                    property_name=prop.name,
                    property_kind=prop.kind,
                    confidence=100,
                    user_defined=True,
                )
            )
        return cls(mappings)

    def _claim(self, mapping: FieldMapping) -> None:
        holder = self.field_for(mapping.property_name)
        if holder is not None and holder != mapping.field:
            logger.info(
                "Property %r moved from %s to %s",
                mapping.property_name,
                holder.value,
                mapping.field.value,
            )
            del self._by_field[holder]
        self._by_field[mapping.field] = mapping


class FieldMapper:
    """Proposes a mapping from semantic fields to destination properties.

    Fields are processed in ascending priority order. Each takes the best
    compatible, unclaimed property if it scores above the threshold, and
    claims it so later fields cannot reuse it.
    """

    def __init__(self, scorer: Scorer = similarity) -> None:
        self._scorer = scorer

    def score(self, spec: FieldSpec, prop: TargetProperty) -> float:
        """Score one field against one property, including the exact-kind bonus."""
        best = self._scorer(spec.field.value, prop.name, spec.keywords)
        for keyword in spec.keywords:
            best = max(best, self._scorer(keyword, prop.name))
        if spec.value_kind == prop.kind:
            best += _EXACT_KIND_BONUS
        return min(best, _MAX_SCORE)

    def suggest(
        self, specs: Iterable[FieldSpec], properties: Iterable[TargetProperty]
    ) -> list[FieldMapping]:
        props = list(properties)
        if not props:
            return []

        claimed: set[str] = set()
        mappings: list[FieldMapping] = []
        for spec in sorted(specs, key=lambda s: s.priority):
            best_prop: TargetProperty | None = None
            best_score = 0.0
            for prop in props:
                if prop.name in claimed or not is_compatible(spec.value_kind, prop.kind):
                    continue
                score = self.score(spec, prop)
                if score > best_score:
                    best_prop, best_score = prop, score

            if best_prop is None or best_score <= _ACCEPT_THRESHOLD:
                logger.debug("No property for %s (best %.1f)", spec.field.value, best_score)
                continue

            claimed.add(best_prop.name)
            mappings.append(
                FieldMapping(
                    field=spec.field,
                    property_name=best_prop.name,
                    property_kind=best_prop.kind,
                    confidence=round(best_score),
                )
            )
        return mappings


def suggest_mapping(
    properties: Iterable[TargetProperty],
    specs: Iterable[FieldSpec] = FIELD_SPECS,
    *,
    mapper: FieldMapper | None = None,
) -> MappingSet:
    """Suggest a full mapping for a destination schema's properties."""
    return MappingSet((mapper or FieldMapper()).suggest(specs, properties))
