from stream_scoring.schema.types import (
    AttributeKind,
    AttributeSchema,
    AttributeSpec,
    FieldKind,
    FieldSchema,
    FieldSpec,
)
from stream_scoring.schema.mapper import NO_MATCH, TYPE_MISMATCH, Mapping, find_mappings

__all__ = [
    "AttributeKind",
    "AttributeSchema",
    "AttributeSpec",
    "FieldKind",
    "FieldSchema",
    "FieldSpec",
    "NO_MATCH",
    "TYPE_MISMATCH",
    "Mapping",
    "find_mappings",
]
