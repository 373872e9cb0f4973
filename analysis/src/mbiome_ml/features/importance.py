"""Feature importance aggregation across CV folds.

Reduces the per-fold coefficient vectors of sparse linear models into a single
ranking. Sparse models may leave features out of a fold's model entirely; such
absences count as a weight of zero.

Design:
- Pure functions over ``{fold: Series(feature -> weight)}`` mappings
- Deterministic ordering: ties broken by feature name
"""

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def weights_matrix(fold_weights: Mapping[int, pd.Series]) -> pd.DataFrame:
    """Stack per-fold weights into a features x folds frame (absent -> 0.0)."""
    if not fold_weights:
        return pd.DataFrame(dtype=float)
    matrix = pd.concat({fold: w.astype(float) for fold, w in fold_weights.items()}, axis=1)
    matrix = matrix.fillna(0.0)
    matrix.index.name = "feature"
    matrix.columns.name = "fold"
    return matrix.sort_index()


def aggregate_importance(fold_weights: Mapping[int, pd.Series]) -> pd.Series:
    """Mean weight of each feature across all folds.

    Args:
        fold_weights: Mapping fold -> Series(feature -> weight)

    Returns:
        Series(feature -> mean weight), indexed by feature name

    Example:
        >>> w = {1: pd.Series({"a": 1.0, "b": -2.0}), 2: pd.Series({"a": 3.0})}
        >>> aggregate_importance(w).to_dict()
        {'a': 2.0, 'b': -1.0}
    """
    matrix = weights_matrix(fold_weights)
    if matrix.empty:
        return pd.Series(dtype=float, name="importance")
    return matrix.mean(axis=1).rename("importance")


def top_k(importance: pd.Series, k: int) -> list[tuple[str, float]]:
    """Select the ``k`` features with largest absolute importance.

    Ties in absolute importance are broken by feature name (ascending).

    Raises:
        ValueError: If ``k`` is negative
    """
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")
    ranked = sorted(importance.items(), key=lambda kv: (-abs(kv[1]), str(kv[0])))
    return [(str(name), float(value)) for name, value in ranked[:k]]


def selection_frequencies(
    fold_weights: Mapping[int, pd.Series], threshold: float = 0.0
) -> pd.Series:
    """Share of folds in which ``|weight| > threshold`` for each feature."""
    matrix = weights_matrix(fold_weights)
    if matrix.empty:
        return pd.Series(dtype=float, name="selection_freq")
    return (matrix.abs() > threshold).mean(axis=1).rename("selection_freq")


def importance_table(
    fold_weights: Mapping[int, pd.Series], threshold: float = 0.0
) -> pd.DataFrame:
    """Reporting table with mean/sd weight, selection frequency and rank.

    Returns:
        DataFrame with columns [feature, mean_weight, sd_weight, selection_freq,
        rank], sorted by (|mean_weight| DESC, feature ASC)
    """
    matrix = weights_matrix(fold_weights)
    columns = ["feature", "mean_weight", "sd_weight", "selection_freq", "rank"]
    if matrix.empty:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(
        {
            "feature": matrix.index.astype(str),
            "mean_weight": matrix.mean(axis=1).to_numpy(),
            "sd_weight": matrix.std(axis=1, ddof=1).fillna(0.0).to_numpy(),
            "selection_freq": selection_frequencies(fold_weights, threshold).to_numpy(),
        }
    )
    df["_abs"] = df["mean_weight"].abs()
    df = df.sort_values(["_abs", "feature"], ascending=[False, True]).drop(columns="_abs")
    df = df.reset_index(drop=True)
    df["rank"] = np.arange(1, len(df) + 1, dtype=int)

    n_selected = int((df["selection_freq"] > 0).sum())
    logger.debug(f"[importance] {n_selected}/{len(df)} features selected in at least one fold")
    return df[columns]
