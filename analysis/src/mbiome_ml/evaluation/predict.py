"""Frozen final model for scoring new cohorts.

This module handles:
- Fitting normalization and a model on every training sample
- Applying both, frozen, to abundance matrices from unseen cohorts
- Saving/loading the bundle with library versions attached
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from ..data.dataset import AbundanceDataset
from ..data.schema import SCORE_COL
from ..errors import DegenerateFoldError, ModelFitError
from ..features.normalization import (
    NormalizationParameters,
    ZeroVariancePolicy,
    fit_normalization,
    transform_features,
)
from ..models.linear import LinearModel, ModelFactory
from ..utils.serialization import library_versions, load_joblib, save_joblib

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class FrozenClassifier:
    """Normalization parameters and a fitted model, applied together.

    Attributes:
        normalization: Parameters fitted on the training cohort
        model: Fitted LinearModel
        positive_label: Class the scores refer to
    """

    normalization: NormalizationParameters
    model: LinearModel
    positive_label: object

    @property
    def feature_names(self) -> tuple[str, ...]:
        return self.normalization.feature_names

    def predict(self, features: pd.DataFrame) -> pd.Series:
        """Score raw abundances of new samples.

        Parameters
        ----------
        features : pd.DataFrame
            Samples x features; must contain every training feature. Extra
            columns are ignored.

        Returns
        -------
        pd.Series
            Sample id -> score (class-1 probability for logistic models).
        """
        normalized = transform_features(features, self.normalization)
        scores = np.asarray(self.model.predict(normalized), dtype=float).ravel()
        return pd.Series(scores, index=features.index, name=SCORE_COL)

    def weights(self) -> pd.Series:
        return self.model.get_weights()


def fit_final_model(
    dataset: AbundanceDataset,
    model_factory: ModelFactory,
    pseudocount: float,
    zero_variance: ZeroVariancePolicy = "raise",
) -> FrozenClassifier:
    """Fit normalization and a model on all samples of ``dataset``.

    Raises:
        DegenerateFeatureError: Zero-variance features under policy "raise"
        DegenerateFoldError: The dataset holds a single class
        ModelFitError: The model failed to fit
    """
    if dataset.n_positive == 0 or dataset.n_negative == 0:
        raise DegenerateFoldError("Final model needs both classes", classes=[str(dataset.positive_label)])

    params = fit_normalization(dataset.features, pseudocount, zero_variance)
    X = transform_features(dataset.features, params)
    model = model_factory()
    try:
        model.fit(X, dataset.y.to_numpy())
    except Exception as e:
        raise ModelFitError(f"Final model fit failed: {e}") from e

    logger.info(
        f"Final model fitted on {X.shape[0]} samples, "
        f"{int((model.get_weights() != 0).sum())}/{X.shape[1]} non-zero coefficients"
    )
    return FrozenClassifier(normalization=params, model=model, positive_label=dataset.positive_label)


def save_model_bundle(classifier: FrozenClassifier, path: str | Path, metadata: dict | None = None):
    """Persist a FrozenClassifier with library versions for later checks."""
    bundle = {
        "classifier": classifier,
        "versions": library_versions(),
        "metadata": metadata or {},
    }
    save_joblib(bundle, path)
    logger.info(f"Saved model bundle: {path}")


def load_model_bundle(path: str | Path) -> FrozenClassifier:
    """Load a FrozenClassifier saved by :func:`save_model_bundle`."""
    bundle = load_joblib(path, check_versions=True)
    if not isinstance(bundle, dict) or "classifier" not in bundle:
        raise ValueError(f"{path} is not a mbiome-ml model bundle")
    return bundle["classifier"]


def export_predictions(
    predictions: pd.Series,
    out_csv: str | Path,
    labels: pd.Series | None = None,
    folds: pd.Series | None = None,
) -> pd.DataFrame:
    """Write sample id, score and (optionally) label and fold to CSV.

    Returns
    -------
    pd.DataFrame
        The exported frame.
    """
    df = pd.DataFrame({SCORE_COL: predictions})
    if labels is not None:
        df["label"] = labels.reindex(predictions.index)
    if folds is not None:
        df["fold"] = folds.reindex(predictions.index)
    df.index.name = "sample_id"

    out_csv = Path(out_csv)
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df.reset_index().to_csv(out_csv, index=False)
    return df.reset_index()
