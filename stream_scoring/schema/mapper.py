# stream_scoring/schema/mapper.py
from __future__ import annotations

"""
Schema Mapper

Attribute -> field correspondence by exact (case-sensitive) name,
filtered by structural type compatibility.

Nominal VALUES are not checked here: legal values are only known once
rows flow, an unseen value becomes missing at conversion time.
"""

from typing import Dict, List

from stream_scoring.schema.types import AttributeSchema, AttributeSpec, FieldSchema, FieldSpec

NO_MATCH = -1
TYPE_MISMATCH = -2

Mapping = List[int]


def is_compatible(attribute: AttributeSpec, field: FieldSpec) -> bool:
    if field.is_numeric or field.is_boolean:
        return attribute.is_numeric
    if field.is_string:
        return attribute.is_nominal or attribute.is_string
    # dates, binary, ... are never compatible
    return False


def find_mappings(header: AttributeSchema, fields: FieldSchema) -> Mapping:
    """
    Returns one entry per attribute: a field index, NO_MATCH or TYPE_MISMATCH.
    """
    lookup: Dict[str, int] = {}
    for i, f in enumerate(fields):
        # last occurrence wins on duplicate names
        lookup[f.name] = i

    mapping: Mapping = []
    for attribute in header:
        match = lookup.get(attribute.name)
        if match is None:
            mapping.append(NO_MATCH)
        elif is_compatible(attribute, fields[match]):
            mapping.append(match)
        else:
            mapping.append(TYPE_MISMATCH)
    return mapping


def is_mapped(mapping: Mapping, attribute_index: int) -> bool:
    return mapping[attribute_index] >= 0


def describe_mapping(header: AttributeSchema, fields: FieldSchema, mapping: Mapping) -> List[str]:
    """Human-readable lines, one per attribute."""
    lines = []
    for attribute, status in zip(header, mapping):
        if status == NO_MATCH:
            lines.append(f"{attribute.name} ({attribute.kind.value}) -> missing")
        elif status == TYPE_MISMATCH:
            lines.append(f"{attribute.name} ({attribute.kind.value}) -> type mismatch")
        else:
            f = fields[status]
            lines.append(f"{attribute.name} ({attribute.kind.value}) -> {f.name} ({f.kind.value})")
    return lines
