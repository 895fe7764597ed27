# stream_scoring/model/scoring_model.py
from __future__ import annotations

"""
ScoringModel

Runtime-only model abstraction over scikit-learn estimators.

Responsibilities:
- Own the AttributeSchema (header) the estimator was trained on
- Turn FeatureVectors into estimator input
- Return raw distributions (probabilities / memberships, or [value] for regression)
- Optional single-instance incremental update (partial_fit)
- Missing values: NaN reaches the estimator only when it accepts NaN
  (sklearn input tags). Otherwise an optional fitted imputer fills the
  gaps, and rows still incomplete abstain instead of failing the call.

Non-responsibilities:
- Schema mapping, row conversion
- Formatting predictions into row fields
- Training

Variants are told apart by ``kind`` (SUPERVISED / UNSUPERVISED), callers
dispatch on it, never on the concrete class.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.utils import get_tags

from stream_scoring import logs
from stream_scoring.engines.instance_builder import FeatureVector
from stream_scoring.schema.types import AttributeSchema
from stream_scoring.utils.errors import InvalidOperationError, UnsupportedOperationError


class ModelKind(str, Enum):
    SUPERVISED = "supervised"
    UNSUPERVISED = "unsupervised"


def final_estimator(estimator: Any) -> Any:
    """Last step of a sklearn Pipeline, the estimator itself otherwise."""
    steps = getattr(estimator, "steps", None)
    if steps:
        return steps[-1][1]
    return estimator


def accepts_missing(estimator: Any) -> bool:
    """
    True when NaN input is declared acceptable by the estimator tags, or by
    the first step of a Pipeline. Objects without sklearn tags are trusted to
    handle NaN themselves.
    """
    steps = getattr(estimator, "steps", None)
    first = steps[0][1] if steps else estimator
    if first is None or first == "passthrough":
        first = final_estimator(estimator)
    if not hasattr(first, "__sklearn_tags__"):
        return True
    return bool(get_tags(first).input_tags.allow_nan)


class ScoringModel(ABC):
    kind: ModelKind

    def __init__(
        self,
        estimator: Any,
        header: AttributeSchema,
        *,
        batch_capable: bool = True,
        preferred_batch_size: Optional[int] = None,
        imputer: Any = None,
    ):
        self.estimator = estimator
        self._header = header
        # fitted transformer over the input columns, e.g. SimpleImputer
        self.imputer = imputer
        self._accepts_nan = accepts_missing(estimator)
        self._batch_capable = batch_capable
        self.preferred_batch_size = preferred_batch_size
        self._input_columns: List[int] = self._select_input_columns()

    # --------------------------------------------------
    # identity
    # --------------------------------------------------
    @property
    def header(self) -> AttributeSchema:
        return self._header

    @property
    def is_supervised(self) -> bool:
        return self.kind == ModelKind.SUPERVISED

    @property
    def is_updatable(self) -> bool:
        return callable(getattr(self.estimator, "partial_fit", None))

    @property
    def is_batch_capable(self) -> bool:
        return self._batch_capable

    @property
    def input_columns(self) -> List[int]:
        """Attribute indices fed to the estimator, in header order."""
        return list(self._input_columns)
    # --------------------------------------------------
    # prediction
    # --------------------------------------------------
    def predict_one(self, vector: FeatureVector) -> np.ndarray:
        return self._predict([vector])[0]

    def predict_batch(self, vectors: Sequence[FeatureVector]) -> np.ndarray:
        if not self.is_batch_capable:
            raise UnsupportedOperationError(
                f"{self.estimator_name} cannot produce batch predictions"
            )
        if not vectors:
            return np.empty((0, 0), dtype=np.float64)
        return self._predict(vectors)

    def update(self, vector: FeatureVector) -> bool:
        if not self.is_updatable:
            return False
        if not self._complete_rows(self._matrix([vector]))[0]:
            logs.debug(f"[{type(self).__name__}] missing input values, instance not used for update")
            return False
        return self._update(vector)

    def number_of_clusters(self) -> int:
        raise InvalidOperationError(
            f"number_of_clusters is only defined for clusterers, not {self.estimator_name}"
        )

    def done(self) -> None:
        """End of a scoring run."""

    def _predict(self, vectors: Sequence[FeatureVector]) -> np.ndarray:
        """
        One estimator call for every row it can take; the other rows get
        the abstention distribution.
        """
        matrix = self._matrix(vectors)
        complete = self._complete_rows(matrix)
        if complete.all():
            return self._distributions(self._to_input(vectors, matrix))

        out = self._abstention(len(vectors))
        if complete.any():
            kept = [v for v, ok in zip(vectors, complete) if ok]
            out[complete] = self._distributions(self._to_input(kept, matrix[complete]))
        return out

    # --------------------------------------------------
    # estimator input
    # --------------------------------------------------
    def _matrix(self, vectors: Sequence[FeatureVector]) -> np.ndarray:
        cols = self._input_columns
        if not cols:
            return np.empty((len(vectors), 0))
        matrix = np.vstack([v.values[cols] for v in vectors])
        if self.imputer is not None:
            matrix = np.asarray(self.imputer.transform(matrix), dtype=np.float64)
        return matrix

    def _complete_rows(self, matrix: np.ndarray) -> np.ndarray:
        if self._accepts_nan:
            return np.ones(len(matrix), dtype=bool)
        return ~np.isnan(matrix).any(axis=1)

    def _to_input(
        self,
        vectors: Sequence[FeatureVector],
        matrix: Optional[np.ndarray] = None,
    ) -> Union[np.ndarray, pd.DataFrame]:
        if matrix is None:
            matrix = self._matrix(vectors)

        if not hasattr(self.estimator, "feature_names_in_"):
            return matrix

        # fitted on a frame: keep names, string attributes carry their text
        cols = self._input_columns
        names = [self._header[i].name for i in cols]
        frame = pd.DataFrame(matrix, columns=names)
        for pos, i in enumerate(cols):
            if self._header[i].is_string:
                frame[names[pos]] = [v.string_values.get(i) for v in vectors]
        return frame

    @staticmethod
    def _normalize(dist: np.ndarray) -> np.ndarray:
        """Rows with no positive mass (abstention) become all zero."""
        dist = np.asarray(dist, dtype=np.float64)
        abstained = dist.sum(axis=1) <= 0
        if abstained.any():
            dist = dist.copy()
            dist[abstained] = 0.0
        return dist

    @property
    def estimator_name(self) -> str:
        return type(final_estimator(self.estimator)).__name__

    def describe(self) -> str:
        lines = [f"{self.kind.value} model: {self.estimator_name}"]
        for i, a in enumerate(self._header):
            role = " (class)" if i == self._header.class_index else ""
            values = f" {{{', '.join(a.values)}}}" if a.is_nominal else ""
            lines.append(f"  @{i} {a.name}: {a.kind.value}{values}{role}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.estimator_name}, attributes={len(self._header)})"

    # --------------------------------------------------
    # variant hooks
    # --------------------------------------------------
    @abstractmethod
    def _select_input_columns(self) -> List[int]:
        ...

    @abstractmethod
    def _distributions(self, X) -> np.ndarray:
        ...

    @abstractmethod
    def _update(self, vector: FeatureVector) -> bool:
        ...

    @abstractmethod
    def _abstention(self, n_rows: int) -> np.ndarray:
        """Distributions for rows the estimator can not score."""
