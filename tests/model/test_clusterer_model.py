# tests/model/test_clusterer_model.py
from __future__ import annotations

import numpy as np
import pytest
from sklearn.cluster import KMeans

from stream_scoring.engines.instance_builder import FeatureVector
from stream_scoring.model.clusterer import ClustererModel
from stream_scoring.model.scoring_model import ModelKind
from stream_scoring.schema.types import AttributeSchema, AttributeSpec
from stream_scoring.utils.errors import InvalidOperationError


def _vector(*values) -> FeatureVector:
    return FeatureVector(values=np.array(values, dtype=np.float64))


def test_flags(cluster_model):
    assert cluster_model.kind == ModelKind.UNSUPERVISED
    assert not cluster_model.is_supervised
    assert cluster_model.number_of_clusters() == 2


def test_hard_clusterer_one_hot(cluster_model):
    np.testing.assert_array_equal(cluster_model.predict_one(_vector(7.0, 1.0, 0.0)), [0.0, 1.0])
    np.testing.assert_array_equal(cluster_model.predict_one(_vector(1.0, 1.0, 0.0)), [1.0, 0.0])


def test_ignored_attributes_are_removed(cluster_header, stubs):
    estimator = stubs.KMeans()
    model = ClustererModel(estimator, cluster_header, ignored_attributes=[1])

    model.predict_one(_vector(7.0, 123.0, 1.0))

    np.testing.assert_array_equal(estimator.calls[-1], [[7.0, 1.0]])
    assert "Attributes ignored by clusterer" in model.describe()


def test_ignored_attribute_out_of_range(cluster_header, stubs):
    with pytest.raises(ValueError):
        ClustererModel(stubs.KMeans(), cluster_header, ignored_attributes=[5])


def test_density_clusterer_memberships(cluster_header, stubs):
    model = ClustererModel(stubs.DensityClusterer(n_components=3), cluster_header)

    assert model.can_produce_probabilities
    assert model.number_of_clusters() == 3
    np.testing.assert_array_equal(model.predict_one(_vector(0.0, 0.0, 0.0)), [0.0, 0.0, 1.0])


def test_update_not_supported_by_stub(cluster_model):
    assert cluster_model.update(_vector(1.0, 2.0, 0.0)) is False


def test_unknown_cluster_count(cluster_header):
    class NoCount:
        def predict(self, X):
            return np.zeros(len(X), dtype=int)

    model = ClustererModel(NoCount(), cluster_header)

    with pytest.raises(InvalidOperationError):
        model.number_of_clusters()


def test_sklearn_kmeans():
    header = AttributeSchema((AttributeSpec.numeric("a"), AttributeSpec.numeric("b")))
    X = np.array([[0.0, 0.0], [0.0, 1.0], [10.0, 10.0], [10.0, 11.0]])
    estimator = KMeans(n_clusters=2, init=np.array([[0.0, 0.0], [10.0, 10.0]]), n_init=1).fit(X)
    model = ClustererModel(estimator, header)

    batch = model.predict_batch([_vector(0.0, 0.5), _vector(10.0, 10.5)])

    np.testing.assert_array_equal(batch, [[1.0, 0.0], [0.0, 1.0]])
    assert model.number_of_clusters() == 2
