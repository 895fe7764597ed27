# stream_scoring/model/supervised.py
from __future__ import annotations

"""
SupervisedModel

Works for any sklearn classifier or regressor (bare or as a Pipeline):
- nominal class attribute -> distribution over the class values, in header order
- numeric class attribute -> [predicted value]
"""

from typing import Any, List, Optional

import numpy as np

from stream_scoring.engines.instance_builder import FeatureVector
from stream_scoring.model.scoring_model import ModelKind, ScoringModel
from stream_scoring.schema.types import AttributeSchema


class SupervisedModel(ScoringModel):
    kind = ModelKind.SUPERVISED

    def __init__(
        self,
        estimator: Any,
        header: AttributeSchema,
        *,
        batch_capable: bool = True,
        preferred_batch_size: Optional[int] = None,
        imputer: Any = None,
    ):
        if header.class_attribute is None:
            raise ValueError("supervised model header has no class attribute")
        if header.class_attribute.is_string:
            raise ValueError(
                f"class attribute '{header.class_attribute.name}' must be numeric or nominal"
            )
        super().__init__(
            estimator,
            header,
            batch_capable=batch_capable,
            preferred_batch_size=preferred_batch_size,
            imputer=imputer,
        )

    @property
    def class_index(self) -> int:
        return self.header.class_index

    @property
    def numeric_target(self) -> bool:
        return self.header.class_attribute.is_numeric

    def _select_input_columns(self) -> List[int]:
        return [i for i in range(len(self.header)) if i != self.header.class_index]

    # --------------------------------------------------
    # class alignment
    # --------------------------------------------------
    def _class_positions(self) -> List[int]:
        """
        Header value index of each entry of estimator.classes_.

        Estimators may have been fitted on the ordinal encoding (0..k-1)
        or on the label strings, both are accepted.
        """
        class_att = self.header.class_attribute
        positions = []
        for c in self.estimator.classes_:
            if isinstance(c, str):
                positions.append(class_att.index_of_value(c))
            else:
                idx = int(c)
                positions.append(idx if 0 <= idx < len(class_att.values) else -1)
        return positions

    def _label_for(self, value_index: int):
        """Target in the representation the estimator was fitted with."""
        classes = getattr(self.estimator, "classes_", None)
        if classes is not None and len(classes) and isinstance(classes[0], str):
            return self.header.class_attribute.values[value_index]
        return value_index

    # --------------------------------------------------
    # hooks
    # --------------------------------------------------
    def _distributions(self, X) -> np.ndarray:
        if self.numeric_target:
            preds = np.asarray(self.estimator.predict(X), dtype=np.float64)
            return preds.reshape(-1, 1)

        n_values = len(self.header.class_attribute.values)
        positions = self._class_positions()

        if hasattr(self.estimator, "predict_proba"):
            proba = np.asarray(self.estimator.predict_proba(X), dtype=np.float64)
            dist = np.zeros((proba.shape[0], n_values), dtype=np.float64)
            for j, pos in enumerate(positions):
                if pos >= 0:
                    dist[:, pos] = proba[:, j]
            return self._normalize(dist)

        # hard classifier: one-hot of the predicted class
        preds = self.estimator.predict(X)
        lookup = {c: pos for c, pos in zip(list(self.estimator.classes_), positions)}
        dist = np.zeros((len(preds), n_values), dtype=np.float64)
        for row, label in enumerate(preds):
            pos = lookup.get(label, -1)
            if pos >= 0:
                dist[row, pos] = 1.0
        return dist

    def _abstention(self, n_rows: int) -> np.ndarray:
        # no prediction for a numeric target is a missing value, not 0
        if self.numeric_target:
            return np.full((n_rows, 1), np.nan)
        return np.zeros((n_rows, len(self.header.class_attribute.values)), dtype=np.float64)

    def _update(self, vector: FeatureVector) -> bool:
        target = vector.values[self.class_index]
        if np.isnan(target):
            return False

        X = self._to_input([vector])
        if self.numeric_target:
            y = np.array([float(target)])
        else:
            y = np.array([self._label_for(int(target))])

        self.estimator.partial_fit(X, y)
        return True
