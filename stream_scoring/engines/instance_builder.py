# stream_scoring/engines/instance_builder.py
from __future__ import annotations

"""
InstanceBuilder

Converts one incoming row into the model's numeric feature representation.

Contract:
- one slot per attribute, encoding matches the attribute kind
- unmapped / type-mismatched / null source -> MISSING (NaN)
- nominal value outside the value set -> MISSING (never an error)
- string attribute -> 0.0, content carried in FeatureVector.string_values
- any coercion failure degrades that single slot to MISSING
  (row conversion always succeeds)
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Set

import numpy as np

from stream_scoring import logs
from stream_scoring.schema.mapper import Mapping
from stream_scoring.schema.types import AttributeSchema, FieldKind, FieldSchema, FieldSpec

MISSING = float("nan")

_TRUE_STRINGS = {"y", "yes", "true", "t", "1"}
_FALSE_STRINGS = {"n", "no", "false", "f", "0"}


def is_missing(value: float) -> bool:
    return math.isnan(value)


@dataclass
class FeatureVector:
    """
    Dense encoding of one row.

    string_values holds the current payload of STRING attributes
    (attribute index -> text), their numeric slot is always 0.0.
    """

    values: np.ndarray
    string_values: Dict[int, str] = field(default_factory=dict)

    @classmethod
    def empty(cls, size: int) -> "FeatureVector":
        return cls(values=np.full(size, MISSING, dtype=np.float64))

    def __len__(self) -> int:
        return len(self.values)

    def is_missing(self, index: int) -> bool:
        return bool(np.isnan(self.values[index]))

    def copy(self) -> "FeatureVector":
        return FeatureVector(values=self.values.copy(), string_values=dict(self.string_values))


def is_null(value: Any) -> bool:
    """null, empty string or a float NaN coming from a dataframe."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    try:
        return bool(value != value)
    except (TypeError, ValueError):
        # pd.NA and friends refuse boolean coercion
        return True


def to_boolean(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE_STRINGS:
            return True
        if v in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return float(value) != 0.0


def to_number(value: Any, spec: FieldSpec) -> float:
    if spec.kind == FieldKind.BOOLEAN:
        return 1.0 if to_boolean(value) else 0.0
    if spec.kind == FieldKind.INTEGER:
        return float(int(value))
    return float(value)


def to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return str(value)


class InstanceBuilder:
    """
    Bound to one (AttributeSchema, FieldSchema, Mapping) triple.
    Rebuild whenever the active model changes.
    """

    def __init__(self, header: AttributeSchema, fields: FieldSchema, mapping: Mapping):
        if len(mapping) != len(header):
            raise ValueError(
                f"mapping has {len(mapping)} entries, header has {len(header)} attributes"
            )
        self.header = header
        self.fields = fields
        self.mapping = mapping
        self._reported_faults: Set[int] = set()

    def new_vector(self) -> FeatureVector:
        return FeatureVector.empty(len(self.header))

    def build(self, row: Sequence[Any], out: Optional[FeatureVector] = None) -> FeatureVector:
        """
        Encode ``row``.

        out: caller-owned buffer overwritten in place; None allocates a fresh vector.
        """
        vector = out if out is not None else self.new_vector()
        vector.string_values.clear()

        for i, attribute in enumerate(self.header):
            src = self.mapping[i]
            if src < 0:
                vector.values[i] = MISSING
                continue

            try:
                value = row[src]
                if is_null(value):
                    vector.values[i] = MISSING
                    continue

                spec = self.fields[src]
                if attribute.is_numeric:
                    vector.values[i] = to_number(value, spec)
                elif attribute.is_nominal:
                    index = attribute.index_of_value(to_text(value))
                    if index < 0:
                        logs.debug(
                            f"[InstanceBuilder] '{attribute.name}': unseen value {value!r} -> missing"
                        )
                        vector.values[i] = MISSING
                    else:
                        vector.values[i] = float(index)
                else:
                    vector.string_values[i] = to_text(value)
                    vector.values[i] = 0.0
            except Exception as e:
                vector.values[i] = MISSING
                self._report_fault(i, e)

        return vector

    def _report_fault(self, index: int, error: Exception) -> None:
        if index in self._reported_faults:
            return
        self._reported_faults.add(index)
        logs.warning(
            f"[InstanceBuilder] '{self.header[index].name}': conversion fault "
            f"({type(error).__name__}: {error}) -> missing; further faults for this attribute are not reported"
        )
