"""
Tests for the frozen final model and prediction export.
"""

import numpy as np
import pandas as pd
import pytest
from conftest import FailingModel, make_abundances
from mbiome_ml.errors import AlignmentError, DegenerateFeatureError, ModelFitError
from mbiome_ml.evaluation.predict import (
    FrozenClassifier,
    export_predictions,
    fit_final_model,
    load_model_bundle,
    save_model_bundle,
)
from mbiome_ml.features.normalization import transform_features
from mbiome_ml.models.linear import make_model_factory
from mbiome_ml.utils.serialization import save_joblib


@pytest.fixture
def classifier(toy_dataset):
    return fit_final_model(toy_dataset, make_model_factory("lasso", random_state=0), pseudocount=1e-6)


@pytest.fixture
def new_cohort():
    return make_abundances(n_samples=8, n_features=10, seed=99).rename(index=lambda s: f"V{s}")


class TestFitFinalModel:
    def test_normalization_fitted_on_all_samples(self, toy_dataset, classifier):
        assert isinstance(classifier, FrozenClassifier)
        assert classifier.feature_names == tuple(toy_dataset.feature_names)
        assert classifier.positive_label == "case"
        logged = np.log10(toy_dataset.features.to_numpy() + 1e-6)
        np.testing.assert_allclose(classifier.normalization.mean, logged.mean(axis=0))

    def test_model_failure_wrapped(self, toy_dataset):
        with pytest.raises(ModelFitError, match="solver diverged"):
            fit_final_model(toy_dataset, FailingModel, pseudocount=1e-6)

    def test_degenerate_feature_raises(self, toy_dataset):
        dataset = toy_dataset.with_features(toy_dataset.features.assign(const=0.0))
        with pytest.raises(DegenerateFeatureError):
            fit_final_model(dataset, FailingModel, pseudocount=1e-6)


class TestFrozenClassifier:
    def test_predict_new_cohort_uses_frozen_parameters(self, classifier, new_cohort):
        scores = classifier.predict(new_cohort)

        assert scores.index.equals(new_cohort.index)
        assert scores.name == "score"
        expected = classifier.model.predict(transform_features(new_cohort, classifier.normalization))
        np.testing.assert_allclose(scores.to_numpy(), expected)

    def test_predict_is_repeatable(self, classifier, new_cohort):
        pd.testing.assert_series_equal(classifier.predict(new_cohort), classifier.predict(new_cohort))

    def test_missing_feature_raises(self, classifier, new_cohort):
        with pytest.raises(AlignmentError):
            classifier.predict(new_cohort.drop(columns="taxon_0"))

    def test_weights(self, classifier, toy_dataset):
        assert classifier.weights().index.tolist() == toy_dataset.feature_names.tolist()


class TestModelBundle:
    def test_round_trip(self, classifier, new_cohort, tmp_path):
        path = tmp_path / "model.joblib"
        save_model_bundle(classifier, path, metadata={"run_id": "r1"})
        restored = load_model_bundle(path)

        pd.testing.assert_series_equal(restored.predict(new_cohort), classifier.predict(new_cohort))

    def test_non_bundle_rejected(self, tmp_path):
        path = tmp_path / "other.joblib"
        save_joblib({"model": None}, path)
        with pytest.raises(ValueError, match="not a mbiome-ml model bundle"):
            load_model_bundle(path)


class TestExportPredictions:
    def test_columns(self, tmp_path):
        preds = pd.Series([0.2, 0.9], index=["a", "b"], name="score")
        labels = pd.Series(["ctrl", "case"], index=["b", "a"])
        folds = pd.Series([1, 2], index=["a", "b"])
        out = tmp_path / "sub" / "predictions.csv"

        df = export_predictions(preds, out, labels=labels, folds=folds)

        assert out.exists()
        assert df.columns.tolist() == ["sample_id", "score", "label", "fold"]
        assert df["label"].tolist() == ["case", "ctrl"]
        written = pd.read_csv(out)
        assert written["sample_id"].tolist() == ["a", "b"]
