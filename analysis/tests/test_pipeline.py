"""
End-to-end tests for the training workflow.

Scenario: 20 samples (10/10), 10 features, 5 folds, seed 42.
"""

import numpy as np
import pandas as pd
import pytest
from conftest import MeanScoreModel
from mbiome_ml.config.schema import (
    CVConfig,
    EvaluationConfig,
    ExecutionConfig,
    FilterConfig,
    NormalizationConfig,
    StrictnessConfig,
    TrainingConfig,
)
from mbiome_ml.config.validation import ConfigValidationError, ConfigValidationWarning
from mbiome_ml.data.folds import FoldAssignment
from mbiome_ml.evaluation.predict import load_model_bundle
from mbiome_ml.pipeline import default_model_factory, run_training, save_training_outputs
from mbiome_ml.utils.serialization import load_json


@pytest.fixture
def config():
    return TrainingConfig(
        run_id="e2e",
        positive_label="case",
        cv=CVConfig(folds=5, seed=42),
        evaluation=EvaluationConfig(top_k=3),
    )


class TestRunTraining:
    def test_end_to_end(self, toy_dataset, config):
        report = run_training(toy_dataset, config)
        cv = report.cv_result

        assert cv.is_complete
        assert len(cv.fold_results) == 5
        assert sorted(cv.folds.sizes().values()) == [4, 4, 4, 4, 4]
        assert cv.predictions.notna().all()
        held = [s for r in cv.fold_results for s in r.held_out]
        assert len(held) == len(set(held)) == 20

        assert 0.0 <= report.auc <= 1.0
        assert report.roc.n_positive == 10
        assert len(report.importance) == 10
        assert len(report.top_features) == 3
        abs_values = [abs(v) for _, v in report.top_features]
        assert abs_values == sorted(abs_values, reverse=True)

        assert report.comparison["predictor"].tolist() == ["model"]
        assert report.comparison.loc[0, "auc"] == pytest.approx(report.auc)
        assert report.final_model is not None

    def test_deterministic(self, toy_dataset, config):
        a = run_training(toy_dataset, config)
        b = run_training(toy_dataset, config)
        pd.testing.assert_series_equal(a.cv_result.predictions, b.cv_result.predictions)
        assert a.auc == b.auc

    def test_reused_folds(self, toy_dataset, config):
        first = run_training(toy_dataset, config)
        captured = FoldAssignment.from_frame(first.cv_result.folds.to_frame())
        second = run_training(toy_dataset, config, folds=captured)
        pd.testing.assert_series_equal(
            first.cv_result.predictions, second.cv_result.predictions, check_names=False
        )

    def test_custom_model_factory(self, toy_dataset, config):
        report = run_training(toy_dataset, config, model_factory=MeanScoreModel)
        assert report.cv_result.is_complete
        assert isinstance(report.final_model.model, MeanScoreModel)

    def test_baseline_comparison(self, toy_dataset, config):
        baseline = pd.Series(np.linspace(0, 1, 20), index=toy_dataset.sample_ids)
        report = run_training(toy_dataset, config, baselines={"fobt": baseline})
        assert report.comparison["predictor"].tolist() == ["model", "fobt"]
        # Cases occupy the first ten ids and the baseline increases with id
        assert report.comparison.loc[1, "auc"] == pytest.approx(0.0)

    def test_filtering_applied(self, toy_dataset, config):
        cutoff = float(toy_dataset.features.max(axis=0).sort_values().iloc[3])
        config = config.model_copy(update={"filtering": FilterConfig(method="abundance", cutoff=cutoff)})
        report = run_training(toy_dataset, config)
        assert report.dataset.features.shape[1] == 7
        assert len(report.importance) == 7

    def test_incomplete_run_withholds_auc_and_importance(self, toy_dataset, config):
        folds = FoldAssignment(
            pd.Series([1] * 10 + [2] * 5 + [3] * 5, index=toy_dataset.sample_ids),
            n_folds=3,
        )
        config = config.model_copy(
            update={
                "execution": ExecutionConfig(on_fold_error="skip"),
                "fit_final_model": False,
            }
        )
        report = run_training(toy_dataset, config, folds=folds)

        assert not report.cv_result.is_complete
        assert report.roc is None
        assert report.auc is None
        assert report.importance is None
        assert report.top_features is None
        metrics = report.metrics()
        assert metrics["complete"] is False
        assert metrics["failed_folds"][0]["error"] == "DegenerateFoldError"
        assert len(metrics["missing_samples"]) == 10

    def test_global_policy_warns(self, toy_dataset, config):
        config = config.model_copy(update={"normalization": NormalizationConfig(policy="global")})
        with pytest.warns(ConfigValidationWarning, match="global"):
            report = run_training(toy_dataset, config)
        assert report.cv_result.global_normalization is not None
        assert any("global" in issue for issue in report.config_issues)

    def test_global_policy_error_in_strict_mode(self, toy_dataset, config):
        config = config.model_copy(
            update={
                "normalization": NormalizationConfig(policy="global"),
                "strictness": StrictnessConfig(level="error"),
            }
        )
        with pytest.raises(ConfigValidationError):
            run_training(toy_dataset, config)

    def test_default_factory_uses_cv_seed(self, config):
        model = default_model_factory(config)()
        assert model.params["random_state"] == 42
        assert model.regularization == "lasso"


class TestSaveTrainingOutputs:
    def test_artifacts_written(self, toy_dataset, config, tmp_path):
        report = run_training(toy_dataset, config)
        paths = save_training_outputs(report, config, tmp_path)

        for name in ("predictions", "folds", "coefficients", "importance", "roc_curve", "comparison", "metrics", "model"):
            assert paths[name].exists(), name

        predictions = pd.read_csv(paths["predictions"])
        assert predictions.columns.tolist() == ["sample_id", "score", "label", "fold"]
        assert len(predictions) == 20

        coefficients = pd.read_csv(paths["coefficients"], index_col=0)
        assert coefficients.shape == (10, 5)

        metrics = load_json(paths["metrics"])
        assert metrics["auc"] == pytest.approx(report.auc)
        assert metrics["n_folds"] == 5
        assert metrics["fold_sizes"] == {"1": 4, "2": 4, "3": 4, "4": 4, "5": 4}

        model = load_model_bundle(paths["model"])
        pd.testing.assert_series_equal(
            model.predict(toy_dataset.features), report.final_model.predict(toy_dataset.features)
        )
