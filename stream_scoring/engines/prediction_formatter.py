# stream_scoring/engines/prediction_formatter.py
from __future__ import annotations

"""
PredictionFormatter

Raw distribution -> appended row values.

Rules:
1. length 1 or output_probabilities off -> one value
   - supervised, numeric target  : the number as-is
   - supervised, nominal target  : label at arg-max (sentinel if arg-max mass <= 0)
   - unsupervised                : arg-max cluster index (sentinel if arg-max mass <= 0)
2. otherwise the full distribution, one numeric field per class / cluster

Arg-max ties resolve to the first index.
"""

from typing import Any, List, Sequence

import numpy as np

from stream_scoring.model.scoring_model import ScoringModel
from stream_scoring.schema.types import AttributeSchema, FieldKind, FieldSpec

UNABLE_TO_PREDICT = "Unable to predict"
UNABLE_TO_PREDICT_CLUSTER = "Unable to predict cluster"


def max_index(dist: Sequence[float]) -> int:
    """First index attaining the maximum (left-to-right scan)."""
    best = 0
    for i in range(1, len(dist)):
        if dist[i] > dist[best]:
            best = i
    return best


class PredictionFormatter:
    def __init__(self, *, supervised: bool, header: AttributeSchema, output_probabilities: bool):
        self.supervised = supervised
        self.output_probabilities = output_probabilities
        self.class_attribute = header.class_attribute if supervised else None

    @classmethod
    def for_model(cls, model: ScoringModel, output_probabilities: bool) -> "PredictionFormatter":
        return cls(
            supervised=model.is_supervised,
            header=model.header,
            output_probabilities=output_probabilities,
        )

    def format(self, dist: Sequence[float]) -> List[Any]:
        dist = np.asarray(dist, dtype=np.float64)

        if len(dist) == 1 or not self.output_probabilities:
            return [self._collapse(dist)]

        return [float(p) for p in dist]

    def _collapse(self, dist: np.ndarray) -> Any:
        if self.supervised and self.class_attribute.is_numeric:
            return float(dist[0])

        best = max_index(dist)
        if self.supervised:
            if dist[best] > 0:
                return self.class_attribute.values[best]
            return UNABLE_TO_PREDICT

        if dist[best] > 0:
            return float(best)
        return UNABLE_TO_PREDICT_CLUSTER


def output_fields(model: ScoringModel, output_probabilities: bool) -> List[FieldSpec]:
    """
    Fields appended to every row. Computable before any row is scored.
    """
    if model.is_supervised:
        class_att = model.header.class_attribute
        if class_att.is_numeric:
            return [FieldSpec(f"{class_att.name}_predicted", FieldKind.NUMERIC)]
        if not output_probabilities:
            return [FieldSpec(f"{class_att.name}_predicted", FieldKind.STRING)]
        return [
            FieldSpec(f"{class_att.name}:{value}_predicted_prob", FieldKind.NUMERIC)
            for value in class_att.values
        ]

    if output_probabilities:
        return [
            FieldSpec(f"cluster_{i}_predicted_prob", FieldKind.NUMERIC)
            for i in range(model.number_of_clusters())
        ]
    # the value may also be the "unable to predict cluster" text
    return [FieldSpec("cluster#_predicted", FieldKind.NUMERIC)]
