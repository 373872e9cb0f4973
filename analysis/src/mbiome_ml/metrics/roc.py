"""
ROC curve and AUC for arbitrary real-valued predictors.

The same code path evaluates the cross-validated model's probabilities and any
external score (e.g. a clinical test used as baseline), so comparisons between
them are computed identically.

Algorithm:
    Samples are sorted by descending score and thresholds swept through every
    distinct score, plus +inf/-inf boundaries. Tied scores share one operating
    point, so the trapezoidal area under (1 - specificity, sensitivity) equals
    the rank identity

        AUC = (concordant pairs + 0.5 * tied pairs) / (P * N)

    A single-class evaluation set has no defined AUC and raises
    ``UndefinedAUCError`` instead of returning a placeholder.

References:
    - Hanley & McNeil (1982). The meaning and use of the area under a ROC curve.
    - Fawcett (2006). An introduction to ROC analysis.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import rankdata

from ..data.dataset import resolve_positive_label
from ..errors import AlignmentError, UndefinedAUCError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ROCCurve:
    """Operating points of a predictor, ordered from the strictest threshold.

    A sample is called positive when ``score >= threshold``.

    Attributes:
        thresholds: +inf, each distinct score (descending), -inf
        sensitivity: TP / P at each threshold
        specificity: 1 - FP / N at each threshold
        auc: Trapezoidal area under the curve
        n_positive: P
        n_negative: N
    """

    thresholds: np.ndarray
    sensitivity: np.ndarray
    specificity: np.ndarray
    auc: float
    n_positive: int
    n_negative: int

    def __post_init__(self):
        for name in ("thresholds", "sensitivity", "specificity"):
            arr = np.array(getattr(self, name), dtype=float)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def fpr(self) -> np.ndarray:
        return 1.0 - self.specificity

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "threshold": self.thresholds,
                "specificity": self.specificity,
                "sensitivity": self.sensitivity,
            }
        )


def _as_arrays(scores, labels, positive_label=None) -> tuple[np.ndarray, np.ndarray]:
    """Align scores with labels and return (scores, is_positive) arrays."""
    if isinstance(scores, pd.Series) and isinstance(labels, pd.Series):
        score_ids, label_ids = set(scores.index), set(labels.index)
        if score_ids != label_ids:
            raise AlignmentError(
                "Scores and labels cover different samples",
                missing_in_features=sorted(map(str, label_ids - score_ids)),
                missing_in_labels=sorted(map(str, score_ids - label_ids)),
            )
        scores = scores.loc[labels.index]

    labels = pd.Series(np.asarray(labels))
    score_arr = np.asarray(scores, dtype=float).ravel()

    if len(score_arr) != len(labels):
        raise ValueError(f"Length mismatch: {len(score_arr)} scores vs {len(labels)} labels")
    if labels.isna().any():
        raise ValueError("Labels contain missing values")
    nan_idx = np.flatnonzero(np.isnan(score_arr))
    if nan_idx.size:
        raise ValueError(
            f"{nan_idx.size} score(s) are NaN (positions {nan_idx[:10].tolist()}); "
            "drop samples without a prediction before evaluating"
        )
    if labels.nunique() > 2:
        raise ValueError(f"Labels must be binary, found levels {sorted(map(str, labels.unique()))}")

    if labels.nunique() < 2:
        level_counts = {level: int(n) for level, n in labels.value_counts().items()}
        only = labels.iloc[0] if len(labels) else None
        n_pos = n_neg = None
        if positive_label is not None or pd.api.types.is_bool_dtype(labels) or only in (0, 1):
            target = 1 if positive_label is None else positive_label
            n_pos = len(labels) if only == target else 0
            n_neg = len(labels) - n_pos
        raise UndefinedAUCError(
            f"AUC is undefined: all {len(labels)} samples have label {only!r}",
            n_positive=n_pos,
            n_negative=n_neg,
            level_counts=level_counts,
        )

    positive = resolve_positive_label(labels, positive_label)
    is_positive = (labels == positive).to_numpy()
    return score_arr, is_positive


def roc_curve(scores, labels, positive_label=None) -> ROCCurve:
    """
    Compute the ROC curve and AUC of a real-valued predictor.

    Args:
        scores: Predictor values (higher = more likely positive); array-like or
            Series indexed by sample id
        labels: Binary labels; array-like or Series indexed by sample id
            (Series inputs are joined on id)
        positive_label: Positive class level; inferred for 0/1 or boolean labels

    Returns:
        ROCCurve

    Raises:
        UndefinedAUCError: If only one class is present
        AlignmentError: If Series inputs cover different samples
        ValueError: NaN scores, non-binary labels, or length mismatch

    Examples:
        >>> curve = roc_curve([0.8, 0.5, 0.5, 0.2], [1, 1, 0, 0])
        >>> curve.auc
        0.875
    """
    score_arr, is_positive = _as_arrays(scores, labels, positive_label)

    n_pos = int(is_positive.sum())
    n_neg = int(len(is_positive) - n_pos)
    if n_pos == 0 or n_neg == 0:
        raise UndefinedAUCError(
            f"AUC is undefined with {n_pos} positive and {n_neg} negative samples",
            n_positive=n_pos,
            n_negative=n_neg,
        )

    order = np.argsort(-score_arr, kind="mergesort")
    sorted_scores = score_arr[order]
    sorted_pos = is_positive[order]

    # Last position of each run of equal scores: one operating point per tie group
    # (compared, not differenced: inf - inf is NaN)
    group_end = np.r_[np.flatnonzero(sorted_scores[1:] != sorted_scores[:-1]), len(sorted_scores) - 1]
    tp = np.cumsum(sorted_pos)[group_end]
    fp = (group_end + 1) - tp

    tpr = np.r_[0.0, tp / n_pos, 1.0]
    fpr = np.r_[0.0, fp / n_neg, 1.0]
    thresholds = np.r_[np.inf, sorted_scores[group_end], -np.inf]

    area = float(np.sum(np.diff(fpr) * (tpr[1:] + tpr[:-1]) / 2.0))

    return ROCCurve(
        thresholds=thresholds,
        sensitivity=tpr,
        specificity=1.0 - fpr,
        auc=area,
        n_positive=n_pos,
        n_negative=n_neg,
    )


def auc(scores, labels, positive_label=None) -> float:
    """Area under the ROC curve; see :func:`roc_curve`.

    Examples:
        >>> auc([0.1, 0.4, 0.6, 0.9], [0, 0, 1, 1])
        1.0
    """
    return roc_curve(scores, labels, positive_label).auc


def rank_auc(scores, labels, positive_label=None) -> float:
    """AUC from the Mann-Whitney rank identity (midranks for ties).

    Independent of the threshold sweep; used to cross-check :func:`auc`.
    """
    score_arr, is_positive = _as_arrays(scores, labels, positive_label)
    n_pos = int(is_positive.sum())
    n_neg = int(len(is_positive) - n_pos)
    if n_pos == 0 or n_neg == 0:
        raise UndefinedAUCError(
            f"AUC is undefined with {n_pos} positive and {n_neg} negative samples",
            n_positive=n_pos,
            n_negative=n_neg,
        )
    ranks = rankdata(score_arr)
    u_stat = ranks[is_positive].sum() - n_pos * (n_pos + 1) / 2.0
    return float(u_stat / (n_pos * n_neg))


def sensitivity_at_specificity(curve: ROCCurve, target_specificity: float = 0.9) -> float:
    """
    Highest sensitivity among operating points with specificity >= target.

    Raises:
        ValueError: If target_specificity is not in [0, 1]
    """
    if not 0.0 <= target_specificity <= 1.0:
        raise ValueError(f"target_specificity must be in [0, 1], got {target_specificity}")
    meets = curve.specificity >= target_specificity
    # The +inf boundary (specificity 1) always qualifies
    return float(np.max(curve.sensitivity[meets]))


def compare_predictors(
    predictors: Mapping[str, pd.Series],
    labels: pd.Series,
    positive_label=None,
    target_specificity: float = 0.9,
) -> pd.DataFrame:
    """
    Evaluate several predictors (model and baselines) against the same labels.

    Each predictor is restricted to the samples it scores (non-missing values);
    labels are joined on sample id.

    Args:
        predictors: Mapping name -> Series(sample id -> score)
        labels: Labels indexed by sample id
        positive_label: Positive class level
        target_specificity: Specificity at which sensitivity is reported

    Returns:
        DataFrame with columns [predictor, n_samples, n_positive, n_negative,
        auc, sensitivity_at_spec]; predictors whose AUC is undefined get an
        explicit NaN plus an ``auc_undefined`` flag set to True
    """
    rows = []
    for name, scores in predictors.items():
        scores = scores.dropna()
        missing = sorted(map(str, set(scores.index) - set(labels.index)))
        if missing:
            raise AlignmentError(f"Predictor '{name}' scores unlabeled samples", missing_in_labels=missing)
        subset = labels.loc[scores.index]
        try:
            curve = roc_curve(scores, subset, positive_label)
        except UndefinedAUCError as e:
            logger.warning(f"[roc] {name}: {e}")
            rows.append(
                {
                    "predictor": name,
                    "n_samples": int(len(scores)),
                    "n_positive": e.n_positive,
                    "n_negative": e.n_negative,
                    "auc": np.nan,
                    "sensitivity_at_spec": np.nan,
                    "auc_undefined": True,
                }
            )
            continue
        rows.append(
            {
                "predictor": name,
                "n_samples": int(len(scores)),
                "n_positive": curve.n_positive,
                "n_negative": curve.n_negative,
                "auc": curve.auc,
                "sensitivity_at_spec": sensitivity_at_specificity(curve, target_specificity),
                "auc_undefined": False,
            }
        )
    return pd.DataFrame(rows)
