# tests/conftest.py
from __future__ import annotations

from typing import List

import numpy as np
import pytest
from loguru import logger

from stream_scoring.model.clusterer import ClustererModel
from stream_scoring.model.supervised import SupervisedModel
from stream_scoring.schema.types import AttributeSchema, AttributeSpec, FieldKind, FieldSchema


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


# =============================================================================
# Stub estimators (duck-typed, no sklearn base classes)
# =============================================================================

class StubClassifier:
    """
    Deterministic classifier over 2 features:
    P(class 0) = 0.8 when x0 > 0 else 0.2.

    classes_ may be ordinals or labels; every call is recorded.
    """

    def __init__(self, classes=(0, 1)):
        self.classes_ = np.array(list(classes))
        self.calls: List[np.ndarray] = []

    def predict_proba(self, X):
        X = np.asarray(X, dtype=float)
        self.calls.append(X)
        first = np.where(np.nan_to_num(X[:, 0]) > 0, 0.8, 0.2)
        return np.column_stack([first, 1.0 - first])


class UpdatableClassifier(StubClassifier):
    def __init__(self, classes=(0, 1)):
        super().__init__(classes)
        self.updates = []

    def partial_fit(self, X, y):
        self.updates.append((np.asarray(X, dtype=float), list(y)))
        return self


class AbstainingClassifier(StubClassifier):
    def predict_proba(self, X):
        X = np.asarray(X, dtype=float)
        self.calls.append(X)
        return np.zeros((len(X), len(self.classes_)))


class StubRegressor:
    """y = 2 * x0 + 1, NaN treated as 0."""

    def __init__(self):
        self.calls = []

    def predict(self, X):
        X = np.asarray(X, dtype=float)
        self.calls.append(X)
        return 2.0 * np.nan_to_num(X[:, 0]) + 1.0


class StubKMeans:
    """Hard clusterer: cluster = 0 when x0 < 5, 1 otherwise."""

    def __init__(self, n_clusters: int = 2):
        self.n_clusters = n_clusters
        self.calls = []

    def predict(self, X):
        X = np.asarray(X, dtype=float)
        self.calls.append(X)
        return (np.nan_to_num(X[:, 0]) >= 5).astype(int)


class StubDensityClusterer:
    def __init__(self, n_components: int = 3):
        self.n_components = n_components

    def predict_proba(self, X):
        X = np.asarray(X, dtype=float)
        out = np.zeros((len(X), self.n_components))
        out[:, -1] = 1.0
        return out


# =============================================================================
# Schemas
# =============================================================================

@pytest.fixture
def class_header() -> AttributeSchema:
    """x (numeric), color (nominal), label (nominal class)."""
    return AttributeSchema(
        attributes=(
            AttributeSpec.numeric("x"),
            AttributeSpec.nominal("color", ["red", "blue"]),
            AttributeSpec.nominal("label", ["yes", "no"]),
        ),
        class_index=2,
    )


@pytest.fixture
def regression_header() -> AttributeSchema:
    return AttributeSchema(
        attributes=(
            AttributeSpec.numeric("x"),
            AttributeSpec.numeric("y"),
            AttributeSpec.numeric("target"),
        ),
        class_index=2,
    )


@pytest.fixture
def cluster_header() -> AttributeSchema:
    return AttributeSchema(
        attributes=(
            AttributeSpec.numeric("x"),
            AttributeSpec.numeric("id"),
            AttributeSpec.nominal("color", ["red", "blue"]),
        )
    )


@pytest.fixture
def class_fields() -> FieldSchema:
    return FieldSchema.of(
        ("x", FieldKind.NUMERIC),
        ("color", FieldKind.STRING),
        ("label", FieldKind.STRING),
    )


@pytest.fixture
def classifier_model(class_header) -> SupervisedModel:
    return SupervisedModel(StubClassifier(), class_header)


@pytest.fixture
def regression_model(regression_header) -> SupervisedModel:
    return SupervisedModel(StubRegressor(), regression_header)


@pytest.fixture
def cluster_model(cluster_header) -> ClustererModel:
    return ClustererModel(StubKMeans(), cluster_header)


@pytest.fixture
def stubs():
    """Access to the stub estimator classes from test modules."""

    class _Stubs:
        Classifier = StubClassifier
        UpdatableClassifier = UpdatableClassifier
        AbstainingClassifier = AbstainingClassifier
        Regressor = StubRegressor
        KMeans = StubKMeans
        DensityClusterer = StubDensityClusterer

    return _Stubs
