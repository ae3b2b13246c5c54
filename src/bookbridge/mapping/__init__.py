# ABOUTME: Mapping package: destination schema view, type compatibility, and field mapping.
# ABOUTME: Exports the suggestion entry point and the user-editable MappingSet.

from bookbridge.mapping.compat import is_compatible
from bookbridge.mapping.mapper import FieldMapper, FieldMapping, MappingSet, suggest_mapping
from bookbridge.mapping.schema import DatabaseSchema, TargetProperty

__all__ = [
    "DatabaseSchema",
    "FieldMapper",
    "FieldMapping",
    "MappingSet",
    "TargetProperty",
    "is_compatible",
    "suggest_mapping",
]
