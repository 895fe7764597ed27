# stream_scoring/schema/types.py
from __future__ import annotations

"""
Schema types

AttributeSchema  : what the model was trained on (owned by the model, immutable)
FieldSchema      : what the incoming row stream carries (owned by the host pipeline)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class AttributeKind(str, Enum):
    NUMERIC = "numeric"
    NOMINAL = "nominal"
    STRING = "string"


class FieldKind(str, Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    STRING = "string"
    OTHER = "other"


@dataclass(frozen=True)
class AttributeSpec:
    name: str
    kind: AttributeKind
    values: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.kind != AttributeKind.NOMINAL and self.values:
            raise ValueError(f"attribute '{self.name}': only nominal attributes carry values")
        if len(set(self.values)) != len(self.values):
            raise ValueError(f"attribute '{self.name}': duplicate nominal values")

    @classmethod
    def numeric(cls, name: str) -> "AttributeSpec":
        return cls(name, AttributeKind.NUMERIC)

    @classmethod
    def nominal(cls, name: str, values: Iterable[str]) -> "AttributeSpec":
        return cls(name, AttributeKind.NOMINAL, tuple(values))

    @classmethod
    def string(cls, name: str) -> "AttributeSpec":
        return cls(name, AttributeKind.STRING)

    @property
    def is_numeric(self) -> bool:
        return self.kind == AttributeKind.NUMERIC

    @property
    def is_nominal(self) -> bool:
        return self.kind == AttributeKind.NOMINAL

    @property
    def is_string(self) -> bool:
        return self.kind == AttributeKind.STRING

    def index_of_value(self, value: str) -> int:
        """Ordinal of ``value`` in the nominal value set, -1 when unseen."""
        try:
            return self.values.index(value)
        except ValueError:
            return -1


@dataclass(frozen=True)
class AttributeSchema:
    """
    AttributeSchema (immutable)

    Invariant:
    - at most one attribute is the class / target
    """

    attributes: Tuple[AttributeSpec, ...]
    class_index: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "attributes", tuple(self.attributes))
        if self.class_index is not None and not 0 <= self.class_index < len(self.attributes):
            raise ValueError(f"class_index {self.class_index} out of range")
        names = [a.name for a in self.attributes]
        if len(set(names)) != len(names):
            raise ValueError("attribute names must be unique")

    def __len__(self) -> int:
        return len(self.attributes)

    def __iter__(self):
        return iter(self.attributes)

    def __getitem__(self, i: int) -> AttributeSpec:
        return self.attributes[i]

    @property
    def names(self) -> List[str]:
        return [a.name for a in self.attributes]

    @property
    def class_attribute(self) -> Optional[AttributeSpec]:
        if self.class_index is None:
            return None
        return self.attributes[self.class_index]

    def index_of(self, name: str) -> int:
        for i, a in enumerate(self.attributes):
            if a.name == name:
                return i
        return -1

    # ------------------------------------------------------------------
    # plain-dict form (artifact metadata)
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": [
                {"name": a.name, "kind": a.kind.value, "values": list(a.values)}
                for a in self.attributes
            ],
            "class_index": self.class_index,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AttributeSchema":
        attrs = tuple(
            AttributeSpec(
                name=a["name"],
                kind=AttributeKind(a["kind"]),
                values=tuple(a.get("values") or ()),
            )
            for a in raw["attributes"]
        )
        return cls(attributes=attrs, class_index=raw.get("class_index"))


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind

    @property
    def is_numeric(self) -> bool:
        return self.kind in (FieldKind.NUMERIC, FieldKind.INTEGER)

    @property
    def is_boolean(self) -> bool:
        return self.kind == FieldKind.BOOLEAN

    @property
    def is_string(self) -> bool:
        return self.kind == FieldKind.STRING


@dataclass(frozen=True)
class FieldSchema:
    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))

    @classmethod
    def of(cls, *pairs: Tuple[str, FieldKind]) -> "FieldSchema":
        return cls(tuple(FieldSpec(n, k) for n, k in pairs))

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self):
        return iter(self.fields)

    def __getitem__(self, i: int) -> FieldSpec:
        return self.fields[i]

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    def index_of(self, name: str) -> int:
        for i, f in enumerate(self.fields):
            if f.name == name:
                return i
        return -1

    def extend(self, extra: Sequence[FieldSpec]) -> "FieldSchema":
        return FieldSchema(self.fields + tuple(extra))
