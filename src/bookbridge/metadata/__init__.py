# ABOUTME: Metadata package: semantic fields, source records, and bibliographic sources.
# ABOUTME: Exports the record types and field table used throughout bookbridge.

from bookbridge.metadata.fields import FIELD_SPECS, FieldSpec
from bookbridge.metadata.types import (
    AudiobookRecord,
    EditionRecord,
    PropertyKind,
    SemanticField,
    SourceRecord,
)

__all__ = [
    "FIELD_SPECS",
    "AudiobookRecord",
    "EditionRecord",
    "FieldSpec",
    "PropertyKind",
    "SemanticField",
    "SourceRecord",
]
