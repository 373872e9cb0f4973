"""Pluggable sparse linear classifier.

The cross-validation loop only depends on the narrow ``LinearModel``
capability: ``fit``, ``predict`` (continuous score, higher = positive) and
``get_weights`` (feature -> coefficient). ``SparseLogisticModel`` satisfies it
with scikit-learn's penalized logistic regression; any other implementation
(closed form, coordinate descent, gradient based) can be dropped in through a
model factory.

References:
- scikit-learn 1.8+ deprecates penalty= in LogisticRegression (use l1_ratio=)
"""

import functools
import re
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

import numpy as np
import pandas as pd
import sklearn
from sklearn.linear_model import LogisticRegression


# ----------------------------
# sklearn version compatibility
# ----------------------------
def _sklearn_version_tuple(ver: str) -> tuple[int, int, int]:
    """Parse sklearn version string (robust to rc/dev suffixes)."""
    nums = re.findall(r"\d+", ver)
    nums = (nums + ["0", "0", "0"])[:3]
    return (int(nums[0]), int(nums[1]), int(nums[2]))


SKLEARN_VER = _sklearn_version_tuple(getattr(sklearn, "__version__", "0.0.0"))

# regularization mode -> (legacy penalty, l1_ratio)
REGULARIZATION_MODES: dict[str, tuple[str, float | None]] = {
    "lasso": ("l1", 1.0),
    "ridge": ("l2", 0.0),
    "elasticnet": ("elasticnet", None),
}


@runtime_checkable
class LinearModel(Protocol):
    """Capability consumed by the cross-validation loop."""

    def fit(self, features: pd.DataFrame, y: np.ndarray) -> "LinearModel": ...

    def predict(self, features: pd.DataFrame) -> np.ndarray: ...

    def get_weights(self) -> pd.Series: ...


ModelFactory = Callable[[], LinearModel]


def build_logistic_regression(
    regularization: str = "lasso",
    C: float = 1.0,
    l1_ratio: float = 0.5,
    solver: str = "saga",
    max_iter: int = 5000,
    tol: float = 1e-4,
    class_weight: str | None = "balanced",
    random_state: int = 0,
) -> LogisticRegression:
    """Build a penalized LogisticRegression (sklearn 1.8+ compatible).

    Args:
        regularization: "lasso", "ridge" or "elasticnet"
        C: Inverse regularization strength
        l1_ratio: ElasticNet mixing, only used for "elasticnet"
        solver: Optimization algorithm (must support the chosen penalty)
        max_iter: Maximum iterations
        tol: Convergence tolerance
        class_weight: "balanced" or None
        random_state: Random seed

    Returns:
        Configured, unfitted LogisticRegression
    """
    if regularization not in REGULARIZATION_MODES:
        raise ValueError(
            f"Unknown regularization mode: {regularization}. "
            f"Expected one of {sorted(REGULARIZATION_MODES)}."
        )
    penalty, mode_ratio = REGULARIZATION_MODES[regularization]
    ratio = float(l1_ratio) if mode_ratio is None else mode_ratio

    lr_common = {
        "solver": solver,
        "C": float(C),
        "max_iter": int(max_iter),
        "tol": float(tol),
        "class_weight": class_weight,
        "random_state": int(random_state),
    }

    # sklearn >=1.8 deprecates penalty=, uses l1_ratio
    if SKLEARN_VER >= (1, 8, 0):
        return LogisticRegression(l1_ratio=ratio, **lr_common)
    if penalty == "elasticnet":
        return LogisticRegression(penalty=penalty, l1_ratio=ratio, **lr_common)
    return LogisticRegression(penalty=penalty, **lr_common)


class SparseLogisticModel:
    """Penalized logistic regression exposing the ``LinearModel`` capability.

    ``predict`` returns the class-1 probability; ``get_weights`` returns one
    coefficient per training feature, zeros included.
    """

    def __init__(self, regularization: str = "lasso", **params: Any):
        self.regularization = regularization
        self.params = params
        self.estimator_: LogisticRegression | None = None
        self.feature_names_: list[str] | None = None

    def fit(self, features: pd.DataFrame, y: np.ndarray) -> "SparseLogisticModel":
        y = np.asarray(y).astype(int)
        if np.unique(y).size != 2:
            raise ValueError("SparseLogisticModel needs both classes in y")
        estimator = build_logistic_regression(self.regularization, **self.params)
        estimator.fit(features.to_numpy(dtype=float), y)
        self.estimator_ = estimator
        self.feature_names_ = [str(c) for c in features.columns]
        return self

    def _check_fitted(self) -> LogisticRegression:
        if self.estimator_ is None:
            raise RuntimeError("Model is not fitted; call fit() first")
        return self.estimator_

    def predict(self, features: pd.DataFrame) -> np.ndarray:
        estimator = self._check_fitted()
        X = features.loc[:, self.feature_names_].to_numpy(dtype=float)
        proba = estimator.predict_proba(X)[:, 1]
        return np.clip(proba, 0.0, 1.0)

    def get_weights(self) -> pd.Series:
        estimator = self._check_fitted()
        return pd.Series(estimator.coef_.ravel(), index=self.feature_names_, name="weight")

    @property
    def intercept(self) -> float:
        return float(self._check_fitted().intercept_[0])

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in sorted(self.params.items()))
        return f"SparseLogisticModel(regularization={self.regularization!r}{', ' if params else ''}{params})"


def make_model_factory(regularization: str = "lasso", **params: Any) -> ModelFactory:
    """Return a picklable zero-argument factory producing fresh models.

    Invalid settings fail here rather than inside the first fold.
    """
    build_logistic_regression(regularization, **params)
    return functools.partial(SparseLogisticModel, regularization, **params)
