# stream_scoring/model/clusterer.py
from __future__ import annotations

"""
ClustererModel

Unsupervised variant. Distribution over cluster ids:
- density based estimators (predict_proba, e.g. GaussianMixture) -> memberships
- hard clusterers (KMeans, MiniBatchKMeans, ...) -> one-hot of predict()

Attributes listed in ``ignored_attributes`` were excluded at training time
and are removed from every vector before prediction and update.
"""

from typing import Any, List, Optional, Sequence

import numpy as np

from stream_scoring.engines.instance_builder import FeatureVector
from stream_scoring.model.scoring_model import ModelKind, ScoringModel, final_estimator
from stream_scoring.schema.types import AttributeSchema
from stream_scoring.utils.errors import InvalidOperationError


class ClustererModel(ScoringModel):
    kind = ModelKind.UNSUPERVISED

    def __init__(
        self,
        estimator: Any,
        header: AttributeSchema,
        *,
        ignored_attributes: Optional[Sequence[int]] = None,
        batch_capable: bool = True,
        preferred_batch_size: Optional[int] = None,
        imputer: Any = None,
    ):
        ignored = sorted(set(ignored_attributes or ()))
        for i in ignored:
            if not 0 <= i < len(header):
                raise ValueError(f"ignored attribute index {i} out of range")
        self.ignored_attributes: List[int] = ignored
        super().__init__(
            estimator,
            header,
            batch_capable=batch_capable,
            preferred_batch_size=preferred_batch_size,
            imputer=imputer,
        )

    @property
    def can_produce_probabilities(self) -> bool:
        return hasattr(self.estimator, "predict_proba")

    def number_of_clusters(self) -> int:
        est = final_estimator(self.estimator)
        for attr in ("n_clusters", "n_components"):
            n = getattr(est, attr, None)
            if isinstance(n, (int, np.integer)):
                return int(n)
        centers = getattr(est, "cluster_centers_", None)
        if centers is not None:
            return len(centers)
        raise InvalidOperationError(
            f"unable to determine the number of clusters of {self.estimator_name}"
        )

    def _select_input_columns(self) -> List[int]:
        ignored = set(self.ignored_attributes)
        return [i for i in range(len(self.header)) if i not in ignored]

    def _distributions(self, X) -> np.ndarray:
        if self.can_produce_probabilities:
            proba = np.asarray(self.estimator.predict_proba(X), dtype=np.float64)
            return self._normalize(proba)

        labels = np.asarray(self.estimator.predict(X))
        k = self.number_of_clusters()
        dist = np.zeros((len(labels), k), dtype=np.float64)
        for row, label in enumerate(labels):
            # noise (-1) and out-of-range ids stay all zero
            if 0 <= label < k:
                dist[row, int(label)] = 1.0
        return dist

    def _abstention(self, n_rows: int) -> np.ndarray:
        return np.zeros((n_rows, self.number_of_clusters()), dtype=np.float64)

    def _update(self, vector: FeatureVector) -> bool:
        self.estimator.partial_fit(self._to_input([vector]))
        return True

    def describe(self) -> str:
        text = super().describe()
        if not self.ignored_attributes:
            return text
        names = "\n".join(f"  {self.header[i].name}" for i in self.ignored_attributes)
        return f"Attributes ignored by clusterer:\n{names}\n{text}"
