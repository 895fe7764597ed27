# tests/model/test_supervised_model.py
from __future__ import annotations

import numpy as np
import pytest
from sklearn.ensemble import HistGradientBoostingClassifier
from sklearn.impute import SimpleImputer
from sklearn.linear_model import LogisticRegression, SGDClassifier
from sklearn.pipeline import make_pipeline

from stream_scoring.engines.instance_builder import FeatureVector
from stream_scoring.model.scoring_model import ModelKind, accepts_missing
from stream_scoring.model.supervised import SupervisedModel
from stream_scoring.schema.types import AttributeSchema, AttributeSpec
from stream_scoring.utils.errors import InvalidOperationError, UnsupportedOperationError


def _vector(*values) -> FeatureVector:
    return FeatureVector(values=np.array(values, dtype=np.float64))


class StubWithoutTags:
    def predict(self, X):
        return np.zeros(len(X))


def test_flags(classifier_model):
    assert classifier_model.kind == ModelKind.SUPERVISED
    assert classifier_model.is_supervised
    assert classifier_model.is_batch_capable
    assert not classifier_model.is_updatable


def test_class_attribute_not_fed_to_estimator(classifier_model):
    classifier_model.predict_one(_vector(1.0, 0.0, 1.0))

    X = classifier_model.estimator.calls[-1]
    assert X.shape == (1, 2)
    assert classifier_model.input_columns == [0, 1]


def test_distribution_in_header_order(classifier_model):
    dist = classifier_model.predict_one(_vector(1.0, 0.0, np.nan))

    np.testing.assert_allclose(dist, [0.8, 0.2])


def test_label_classes_are_aligned_to_header(class_header, stubs):
    # estimator knows the labels in the opposite order of the header
    model = SupervisedModel(stubs.Classifier(classes=("no", "yes")), class_header)

    dist = model.predict_one(_vector(1.0, 0.0, np.nan))

    # P(no) = 0.8 at estimator position 0 -> header position 1
    np.testing.assert_allclose(dist, [0.2, 0.8])


def test_abstention_returns_all_zero(class_header, stubs):
    model = SupervisedModel(stubs.AbstainingClassifier(), class_header)

    dist = model.predict_one(_vector(1.0, 0.0, np.nan))

    assert list(dist) == [0.0, 0.0]


def test_numeric_target_distribution_of_length_one(regression_model):
    dist = regression_model.predict_one(_vector(2.0, 9.0, np.nan))

    assert dist.shape == (1,)
    assert dist[0] == 5.0


def test_batch_matches_single(classifier_model):
    vectors = [_vector(x, 0.0, np.nan) for x in (-1.0, 2.0, 0.0)]

    batch = classifier_model.predict_batch(vectors)

    for v, row in zip(vectors, batch):
        np.testing.assert_allclose(classifier_model.predict_one(v), row)


def test_batch_on_non_batch_model_raises(class_header, stubs):
    model = SupervisedModel(stubs.Classifier(), class_header, batch_capable=False)

    with pytest.raises(UnsupportedOperationError):
        model.predict_batch([_vector(1.0, 0.0, 0.0)])


def test_update_not_updatable_returns_false(classifier_model):
    assert classifier_model.update(_vector(1.0, 0.0, 0.0)) is False


def test_update_passes_target_in_estimator_representation(class_header, stubs):
    estimator = stubs.UpdatableClassifier(classes=("yes", "no"))
    model = SupervisedModel(estimator, class_header)

    assert model.is_updatable
    assert model.update(_vector(3.0, 1.0, 1.0)) is True

    X, y = estimator.updates[-1]
    assert X.shape == (1, 2)
    assert y == ["no"]


def test_update_with_ordinal_classes(class_header, stubs):
    estimator = stubs.UpdatableClassifier()
    model = SupervisedModel(estimator, class_header)

    model.update(_vector(3.0, 1.0, 0.0))

    assert estimator.updates[-1][1] == [0]


def test_update_skipped_when_target_missing(class_header, stubs):
    estimator = stubs.UpdatableClassifier()
    model = SupervisedModel(estimator, class_header)

    assert model.update(_vector(3.0, 1.0, np.nan)) is False
    assert estimator.updates == []


def test_number_of_clusters_invalid(classifier_model):
    with pytest.raises(InvalidOperationError):
        classifier_model.number_of_clusters()


def test_header_without_class_rejected(cluster_header, stubs):
    with pytest.raises(ValueError, match="class attribute"):
        SupervisedModel(stubs.Classifier(), cluster_header)


def test_string_class_rejected(stubs):
    header = AttributeSchema((AttributeSpec.numeric("x"), AttributeSpec.string("t")), class_index=1)

    with pytest.raises(ValueError, match="numeric or nominal"):
        SupervisedModel(stubs.Classifier(), header)


def test_describe_marks_class(classifier_model):
    text = classifier_model.describe()

    assert "label: nominal {yes, no} (class)" in text


def test_missing_value_support_from_tags():
    assert accepts_missing(LogisticRegression()) is False
    assert accepts_missing(HistGradientBoostingClassifier()) is True
    assert accepts_missing(make_pipeline(SimpleImputer(), LogisticRegression())) is True
    assert accepts_missing(StubWithoutTags()) is True


def test_incomplete_row_abstains_with_real_classifier(class_header):
    X = np.array([[-1.0, 0.0], [-2.0, 0.0], [1.0, 1.0], [2.0, 1.0]])
    model = SupervisedModel(LogisticRegression().fit(X, [0, 0, 1, 1]), class_header)

    batch = model.predict_batch([_vector(2.0, 1.0, np.nan), _vector(2.0, np.nan, np.nan)])

    assert batch[0][1] > batch[0][0]
    np.testing.assert_array_equal(batch[1], [0.0, 0.0])


def test_update_skipped_when_input_missing(class_header):
    X = np.array([[-1.0, 0.0], [-2.0, 0.0], [1.0, 1.0], [2.0, 1.0]])
    estimator = SGDClassifier(random_state=0).fit(X, [0, 0, 1, 1])
    model = SupervisedModel(estimator, class_header)
    coef = estimator.coef_.copy()

    assert model.update(_vector(1.0, np.nan, 0.0)) is False
    np.testing.assert_array_equal(estimator.coef_, coef)

    assert model.update(_vector(1.0, 1.0, 0.0)) is True
