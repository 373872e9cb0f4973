"""
Tests for the pluggable sparse linear model.
"""

import numpy as np
import pandas as pd
import pytest
from mbiome_ml.models.linear import (
    LinearModel,
    SparseLogisticModel,
    _sklearn_version_tuple,
    build_logistic_regression,
    make_model_factory,
)
from sklearn.linear_model import LogisticRegression


@pytest.fixture
def separable():
    rng = np.random.default_rng(1)
    y = np.array([0] * 30 + [1] * 30)
    X = pd.DataFrame(rng.normal(size=(60, 5)), columns=[f"f{i}" for i in range(5)])
    X["f0"] += 3.0 * y
    return X, y


class TestSklearnVersion:
    def test_parses_plain_and_suffixed_versions(self):
        assert _sklearn_version_tuple("1.8.0") == (1, 8, 0)
        assert _sklearn_version_tuple("1.5.dev0") == (1, 5, 0)
        assert _sklearn_version_tuple("1.4") == (1, 4, 0)


class TestBuildLogisticRegression:
    def test_returns_configured_estimator(self):
        est = build_logistic_regression("lasso", C=0.3, random_state=7)
        assert isinstance(est, LogisticRegression)
        assert est.C == pytest.approx(0.3)
        assert est.solver == "saga"
        assert est.random_state == 7

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError, match="Unknown regularization mode"):
            build_logistic_regression("dropout")


class TestSparseLogisticModel:
    def test_satisfies_linear_model_capability(self):
        assert isinstance(SparseLogisticModel(), LinearModel)

    def test_fit_predict_weights(self, separable):
        X, y = separable
        model = SparseLogisticModel("lasso", C=1.0, random_state=0).fit(X, y)

        scores = model.predict(X)
        assert scores.shape == (60,)
        assert ((scores >= 0) & (scores <= 1)).all()
        assert scores[y == 1].mean() > scores[y == 0].mean()

        weights = model.get_weights()
        assert weights.index.tolist() == X.columns.tolist()
        assert weights["f0"] > 0
        assert isinstance(model.intercept, float)

    def test_strong_l1_penalty_zeroes_coefficients(self, separable):
        X, y = separable
        model = SparseLogisticModel("lasso", C=1e-4, random_state=0).fit(X, y)
        assert (model.get_weights() == 0).all()

    def test_predict_uses_column_names(self, separable):
        X, y = separable
        model = SparseLogisticModel("ridge", random_state=0).fit(X, y)
        np.testing.assert_allclose(model.predict(X[X.columns[::-1]]), model.predict(X))

    def test_single_class_rejected(self, separable):
        X, _ = separable
        with pytest.raises(ValueError, match="both classes"):
            SparseLogisticModel().fit(X, np.zeros(len(X)))

    def test_unfitted_raises(self, separable):
        X, _ = separable
        with pytest.raises(RuntimeError, match="not fitted"):
            SparseLogisticModel().predict(X)
        with pytest.raises(RuntimeError, match="not fitted"):
            SparseLogisticModel().get_weights()

    def test_repr(self):
        assert repr(SparseLogisticModel("ridge", C=2.0)) == "SparseLogisticModel(regularization='ridge', C=2.0)"


class TestModelFactory:
    def test_returns_fresh_instances(self):
        factory = make_model_factory("elasticnet", C=0.5, l1_ratio=0.3)
        a, b = factory(), factory()
        assert a is not b
        assert a.regularization == "elasticnet"
        assert a.params == {"C": 0.5, "l1_ratio": 0.3}

    def test_invalid_settings_fail_early(self):
        with pytest.raises(ValueError):
            make_model_factory("unknown")
        with pytest.raises(TypeError):
            make_model_factory("lasso", not_a_param=1)
