"""
Shared pytest fixtures for mbiome-ml tests.
"""

import numpy as np
import pandas as pd
import pytest
from mbiome_ml.data.dataset import AbundanceDataset


def make_abundances(
    n_samples: int = 20,
    n_features: int = 10,
    seed: int = 0,
    n_informative: int = 3,
    labels: np.ndarray | None = None,
) -> pd.DataFrame:
    """
    Simulate relative-abundance profiles (rows sum to 1, strictly positive).

    Positive samples (labels == 1) get a boost on the first ``n_informative``
    features so that a linear model has some signal to find.
    """
    rng = np.random.default_rng(seed)
    raw = rng.lognormal(mean=0.0, sigma=1.5, size=(n_samples, n_features))
    if labels is not None:
        raw[np.asarray(labels) == 1, :n_informative] *= 8.0
    rel = raw / raw.sum(axis=1, keepdims=True)
    return pd.DataFrame(
        rel,
        index=[f"S{i:02d}" for i in range(1, n_samples + 1)],
        columns=[f"taxon_{j}" for j in range(n_features)],
    )


def make_dataset(
    n_pos: int = 10,
    n_neg: int = 10,
    n_features: int = 10,
    seed: int = 0,
) -> AbundanceDataset:
    """Balanced case/control dataset with symbolic labels."""
    y = np.array([1] * n_pos + [0] * n_neg)
    features = make_abundances(n_pos + n_neg, n_features, seed=seed, labels=y)
    labels = pd.Series(np.where(y == 1, "case", "control"), index=features.index, name="label")
    return AbundanceDataset.from_frames(features, labels, positive_label="case")


@pytest.fixture
def toy_dataset() -> AbundanceDataset:
    """20 samples (10 case / 10 control) x 10 features."""
    return make_dataset()


@pytest.fixture
def toy_abundances() -> pd.DataFrame:
    """Unlabeled 30 x 8 relative-abundance matrix."""
    return make_abundances(n_samples=30, n_features=8, seed=7)


class MeanScoreModel:
    """Minimal LinearModel: score = row mean, weights = training column means.

    Records the training sample ids and matrices it saw.
    """

    fitted_on: list = []

    def __init__(self):
        self.weights_ = None

    def fit(self, features, y):
        MeanScoreModel.fitted_on.append(features.copy())
        self.weights_ = features.mean(axis=0)
        return self

    def predict(self, features):
        return features.mean(axis=1).to_numpy()

    def get_weights(self):
        return self.weights_


class FailingModel:
    """LinearModel whose fit always raises."""

    def fit(self, features, y):
        raise RuntimeError("solver diverged")

    def predict(self, features):
        return np.zeros(len(features))

    def get_weights(self):
        return pd.Series(dtype=float)


class NaNModel(MeanScoreModel):
    """LinearModel producing non-finite scores."""

    def predict(self, features):
        return np.full(len(features), np.nan)


@pytest.fixture
def recording_model():
    """Factory for MeanScoreModel with a cleared training log."""
    MeanScoreModel.fitted_on = []
    return MeanScoreModel
