"""
Cross-validation orchestration for sparse linear classifiers.

Provides:
- Out-of-fold (OOF) prediction generation over a fixed fold assignment
- Global or per-fold (leakage-free) frozen normalization
- Per-fold coefficient capture for feature importance
- Fold-local failure handling (abort or skip-and-report)
- Parallel fold execution through joblib (fan-out / fan-in)

Each fold produces an immutable ``FoldResult``; predictions are assembled
afterwards by ``merge_fold_results``, which enforces that every sample is
written at most once and only by the fold that holds it out.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from ..data.dataset import AbundanceDataset
from ..data.folds import FoldAssignment
from ..data.schema import DEFAULT_PSEUDOCOUNT, SCORE_COL
from ..errors import (
    CrossValidationError,
    DegenerateFoldError,
    MbiomeMLError,
    ModelFitError,
)
from ..features.importance import weights_matrix
from ..features.normalization import (
    NormalizationParameters,
    ZeroVariancePolicy,
    fit_normalization,
    transform_features,
)
from .linear import ModelFactory

logger = logging.getLogger(__name__)

NormalizePolicy = Literal["global", "per_fold"]
FoldErrorPolicy = Literal["abort", "skip"]


@dataclass(frozen=True, eq=False)
class FoldResult:
    """Outcome of one train/score round.

    Attributes:
        fold: Fold index (1-based)
        held_out: Samples scored by this fold
        n_train: Number of training samples
        scores: Held-out sample id -> score (None if the fold failed)
        weights: Feature -> coefficient of the fold's model (None if failed)
        intercept: Model intercept, when the model exposes one
        elapsed_sec: Wall time of the fold
        error: Fold-local failure (DegenerateFoldError / ModelFitError)
    """

    fold: int
    held_out: tuple
    n_train: int
    scores: pd.Series | None = None
    weights: pd.Series | None = None
    intercept: float | None = None
    elapsed_sec: float = 0.0
    error: MbiomeMLError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True, eq=False)
class CrossValidationResult:
    """Merged out-of-fold predictions plus per-fold artifacts."""

    predictions: pd.Series
    fold_results: tuple[FoldResult, ...]
    folds: FoldAssignment
    normalize_policy: NormalizePolicy
    global_normalization: NormalizationParameters | None = None
    elapsed_sec: float = 0.0
    metadata: dict = field(default_factory=dict)

    @property
    def failures(self) -> tuple[FoldResult, ...]:
        return tuple(r for r in self.fold_results if not r.succeeded)

    @property
    def missing_samples(self) -> list:
        return self.predictions.index[self.predictions.isna()].tolist()

    @property
    def is_complete(self) -> bool:
        return not self.failures and not self.predictions.isna().any()

    @property
    def fold_weights(self) -> dict[int, pd.Series]:
        return {r.fold: r.weights for r in self.fold_results if r.succeeded}

    @property
    def coefficients(self) -> pd.DataFrame:
        """Features x folds coefficient matrix of the successful folds."""
        return weights_matrix(self.fold_weights)

    def require_complete(self) -> "CrossValidationResult":
        """Raise ``CrossValidationError`` unless every fold succeeded."""
        if not self.is_complete:
            raise CrossValidationError(
                "Cross-validation result is incomplete",
                failed_folds=[r.fold for r in self.failures],
                missing_samples=[str(s) for s in self.missing_samples],
            )
        return self


def _run_fold(
    fold: int,
    features: pd.DataFrame,
    y: pd.Series,
    labels: pd.Series,
    folds: FoldAssignment,
    model_factory: ModelFactory,
    normalize_policy: NormalizePolicy,
    pseudocount: float,
    zero_variance: ZeroVariancePolicy,
) -> FoldResult:
    """Fit on all samples outside ``fold`` and score the held-out samples."""
    t0 = time.perf_counter()
    train_ids = folds.training(fold)
    test_ids = folds.held_out(fold)
    held_out = tuple(test_ids)

    logger.info(
        f"Fold {fold}/{folds.n_folds} start (train={len(train_ids)}, held-out={len(test_ids)})"
    )

    try:
        train_classes = pd.unique(labels.loc[train_ids])
        if len(train_classes) < 2:
            raise DegenerateFoldError(
                f"Fold {fold}: training partition has a single class "
                f"{[str(c) for c in train_classes]} ({len(train_ids)} samples)",
                fold=fold,
                classes=[str(c) for c in train_classes],
            )

        X_train = features.loc[train_ids]
        X_test = features.loc[test_ids]
        if normalize_policy == "per_fold":
            # Parameters stay private to this fold
            params = fit_normalization(X_train, pseudocount, zero_variance)
            X_train = transform_features(X_train, params)
            X_test = transform_features(X_test, params)

        model = model_factory()
        try:
            model.fit(X_train, y.loc[train_ids].to_numpy())
            scores = np.asarray(model.predict(X_test), dtype=float).ravel()
            weights = pd.Series(model.get_weights(), dtype=float)
        except Exception as e:
            raise ModelFitError(f"Fold {fold}: model fit/predict failed: {e}", fold=fold) from e

        if len(scores) != len(test_ids):
            raise ModelFitError(
                f"Fold {fold}: model returned {len(scores)} scores for {len(test_ids)} samples",
                fold=fold,
            )
        if not np.isfinite(scores).all():
            bad = [str(s) for s in test_ids[~np.isfinite(scores)]]
            raise ModelFitError(f"Fold {fold}: non-finite scores for samples {bad[:10]}", fold=fold)

    except (DegenerateFoldError, ModelFitError) as e:
        logger.warning(f"Fold {fold}/{folds.n_folds} failed: {e}")
        return FoldResult(
            fold=fold,
            held_out=held_out,
            n_train=len(train_ids),
            elapsed_sec=time.perf_counter() - t0,
            error=e,
        )

    intercept = getattr(model, "intercept", None)
    n_nonzero = int((weights != 0).sum())
    elapsed = time.perf_counter() - t0
    logger.info(
        f"Fold {fold}/{folds.n_folds} done in {elapsed:.2f}s "
        f"({n_nonzero}/{len(weights)} non-zero coefficients)"
    )
    return FoldResult(
        fold=fold,
        held_out=held_out,
        n_train=len(train_ids),
        scores=pd.Series(scores, index=test_ids, name=SCORE_COL),
        weights=weights.rename("weight"),
        intercept=None if intercept is None else float(intercept),
        elapsed_sec=elapsed,
    )


def merge_fold_results(fold_results, folds: FoldAssignment) -> pd.Series:
    """
    Assemble the out-of-fold prediction record from per-fold results.

    Samples of failed folds stay NaN.

    Raises:
        RuntimeError: If a fold scored samples outside its held-out set, or two
            folds scored the same sample
    """
    predictions = pd.Series(np.nan, index=folds.sample_ids, name=SCORE_COL, dtype=float)
    written: set = set()

    for result in sorted(fold_results, key=lambda r: r.fold):
        if not result.succeeded:
            continue
        ids = set(result.scores.index)
        expected = set(folds.held_out(result.fold))
        if ids != expected:
            raise RuntimeError(
                f"Fold {result.fold} scored samples outside its held-out set: "
                f"{sorted(map(str, ids ^ expected))[:10]}. Check fold assignment logic."
            )
        overlap = written & ids
        if overlap:
            raise RuntimeError(
                f"Samples scored by more than one fold: {sorted(map(str, overlap))[:10]}"
            )
        predictions.loc[result.scores.index] = result.scores.to_numpy()
        written |= ids

    return predictions


def run_cross_validation(
    dataset: AbundanceDataset,
    folds: FoldAssignment,
    model_factory: ModelFactory,
    *,
    normalize_policy: NormalizePolicy = "per_fold",
    pseudocount: float = DEFAULT_PSEUDOCOUNT,
    zero_variance: ZeroVariancePolicy = "raise",
    on_fold_error: FoldErrorPolicy = "abort",
    n_jobs: int = 1,
    backend: str = "loky",
) -> CrossValidationResult:
    """
    Generate out-of-fold predictions and per-fold coefficients.

    Args:
        dataset: Aligned features and labels (raw abundances)
        folds: Fold assignment covering exactly the dataset's samples
        model_factory: Zero-argument callable returning a fresh LinearModel
        normalize_policy: "global" fits normalization once on all samples
            before CV (leaks population statistics across folds); "per_fold"
            fits it on each training partition only
        pseudocount: n0 for the log transform
        zero_variance: "raise" or "drop" zero-variance features
        on_fold_error: "abort" raises on any fold failure; "skip" completes
            with the failed folds' samples left unset
        n_jobs: Parallel fold workers (1 = sequential, -1 = all cores)
        backend: joblib backend ("loky" or "threading")

    Returns:
        CrossValidationResult

    Raises:
        AlignmentError: Fold assignment and dataset cover different samples
        DegenerateFeatureError: Zero-variance features under policy "raise"
            (fatal for the whole run, also when raised inside a fold)
        CrossValidationError: A fold failed and ``on_fold_error="abort"``
    """
    if normalize_policy not in ("global", "per_fold"):
        raise ValueError(f"Unknown normalize_policy: {normalize_policy}")
    if on_fold_error not in ("abort", "skip"):
        raise ValueError(f"Unknown on_fold_error policy: {on_fold_error}")

    folds.check_covers(dataset.sample_ids)

    t0 = time.perf_counter()
    features = dataset.features
    global_params = None
    if normalize_policy == "global":
        global_params = fit_normalization(features, pseudocount, zero_variance)
        features = transform_features(features, global_params)

    logger.info(
        f"Cross-validation: {folds.n_folds} folds, {len(dataset.sample_ids)} samples, "
        f"{features.shape[1]} features, normalization={normalize_policy}, n_jobs={n_jobs}"
    )

    fold_results = Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(_run_fold)(
            fold,
            features,
            dataset.y,
            dataset.labels,
            folds,
            model_factory,
            normalize_policy,
            pseudocount,
            zero_variance,
        )
        for fold in folds.folds
    )

    predictions = merge_fold_results(fold_results, folds)
    result = CrossValidationResult(
        predictions=predictions,
        fold_results=tuple(sorted(fold_results, key=lambda r: r.fold)),
        folds=folds,
        normalize_policy=normalize_policy,
        global_normalization=global_params,
        elapsed_sec=time.perf_counter() - t0,
    )

    if result.failures:
        failed = [r.fold for r in result.failures]
        if on_fold_error == "abort":
            raise CrossValidationError(
                "Cross-validation aborted",
                failed_folds=failed,
                missing_samples=[str(s) for s in result.missing_samples],
            ) from result.failures[0].error
        logger.warning(
            f"Skipped {len(failed)} failed fold(s) {failed}; "
            f"{len(result.missing_samples)} sample(s) have no prediction: "
            f"{[str(s) for s in result.missing_samples][:10]}"
        )

    logger.info(f"Cross-validation finished in {result.elapsed_sec:.2f}s")
    return result
