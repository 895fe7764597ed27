# tests/schema/test_mapper.py
from __future__ import annotations

import pytest

from stream_scoring.schema.mapper import (
    NO_MATCH,
    TYPE_MISMATCH,
    describe_mapping,
    find_mappings,
    is_compatible,
)
from stream_scoring.schema.types import (
    AttributeSchema,
    AttributeSpec,
    FieldKind,
    FieldSchema,
    FieldSpec,
)

NUMERIC = AttributeSpec.numeric("a")
NOMINAL = AttributeSpec.nominal("a", ["x", "y"])
STRING = AttributeSpec.string("a")


@pytest.mark.parametrize(
    "attribute, field_kind",
    [
        (NUMERIC, FieldKind.NUMERIC),
        (NUMERIC, FieldKind.BOOLEAN),
        (NUMERIC, FieldKind.INTEGER),
        (NOMINAL, FieldKind.STRING),
        (STRING, FieldKind.STRING),
    ],
)
def test_compatible_kinds_map_to_field_index(attribute, field_kind):
    header = AttributeSchema((attribute,))
    fields = FieldSchema.of(("other", FieldKind.NUMERIC), ("a", field_kind))

    assert is_compatible(attribute, FieldSpec("a", field_kind))
    assert find_mappings(header, fields) == [1]


@pytest.mark.parametrize(
    "attribute, field_kind",
    [
        (NUMERIC, FieldKind.STRING),
        (NUMERIC, FieldKind.OTHER),
        (NOMINAL, FieldKind.NUMERIC),
        (NOMINAL, FieldKind.BOOLEAN),
        (NOMINAL, FieldKind.INTEGER),
        (STRING, FieldKind.NUMERIC),
        (STRING, FieldKind.OTHER),
    ],
)
def test_incompatible_kinds_are_type_mismatch(attribute, field_kind):
    header = AttributeSchema((attribute,))
    fields = FieldSchema.of(("a", field_kind))

    assert find_mappings(header, fields) == [TYPE_MISMATCH]


def test_unknown_name_is_no_match():
    header = AttributeSchema((AttributeSpec.numeric("age"),))
    fields = FieldSchema.of(("height", FieldKind.NUMERIC))

    assert find_mappings(header, fields) == [NO_MATCH]


def test_name_match_is_case_sensitive():
    header = AttributeSchema((AttributeSpec.numeric("age"),))
    fields = FieldSchema.of(("Age", FieldKind.NUMERIC))

    assert find_mappings(header, fields) == [NO_MATCH]


def test_mapping_has_one_entry_per_attribute():
    header = AttributeSchema(
        (
            AttributeSpec.numeric("age"),
            AttributeSpec.nominal("color", ["red", "blue"]),
            AttributeSpec.string("note"),
            AttributeSpec.numeric("missing"),
        )
    )
    fields = FieldSchema.of(
        ("note", FieldKind.STRING),
        ("color", FieldKind.STRING),
        ("age", FieldKind.NUMERIC),
    )

    mapping = find_mappings(header, fields)

    assert len(mapping) == len(header)
    assert mapping == [2, 1, 0, NO_MATCH]


def test_nominal_values_are_not_checked_when_mapping():
    header = AttributeSchema(
        (AttributeSpec.numeric("age"), AttributeSpec.nominal("color", ["red", "blue"]))
    )
    fields = FieldSchema.of(("age", FieldKind.NUMERIC), ("color", FieldKind.STRING))

    assert find_mappings(header, fields) == [0, 1]


def test_describe_mapping_lists_every_attribute():
    header = AttributeSchema(
        (AttributeSpec.numeric("age"), AttributeSpec.numeric("color"), AttributeSpec.numeric("z"))
    )
    fields = FieldSchema.of(("age", FieldKind.INTEGER), ("color", FieldKind.STRING))
    mapping = find_mappings(header, fields)

    lines = describe_mapping(header, fields, mapping)

    assert lines == [
        "age (numeric) -> age (integer)",
        "color (numeric) -> type mismatch",
        "z (numeric) -> missing",
    ]
