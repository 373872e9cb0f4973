"""Frozen log10 + z-score normalization for relative-abundance features.

Fitting computes, per feature, the mean and sample standard deviation of
``log10(x + n0)``. The resulting ``NormalizationParameters`` are immutable and
can be applied unchanged to any later matrix with the same features, which is
what keeps held-out folds and external cohorts free of training-set leakage.

Design:
- Pure functions: ``transform_features`` depends only on (matrix, params)
- Unsupervised: labels are never consulted
- Zero-variance features are either rejected or dropped, never divided by
"""

import logging
from dataclasses import dataclass, field
from typing import Literal

import numpy as np
import pandas as pd

from ..data.schema import DEFAULT_PSEUDOCOUNT, MIN_STD
from ..errors import AlignmentError, DegenerateFeatureError

logger = logging.getLogger(__name__)

ZeroVariancePolicy = Literal["raise", "drop"]


def _read_only(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class NormalizationParameters:
    """Per-feature log-space mean and standard deviation.

    Attributes:
        feature_names: Features the parameters apply to (in output order)
        mean: log10-space means, aligned with ``feature_names``
        std: log10-space sample standard deviations (ddof=1)
        pseudocount: n0 added before the log
        dropped_features: Zero-variance features excluded at fit time
    """

    feature_names: tuple[str, ...]
    mean: np.ndarray
    std: np.ndarray
    pseudocount: float = DEFAULT_PSEUDOCOUNT
    dropped_features: tuple[str, ...] = field(default=())

    def __post_init__(self):
        if len(self.mean) != len(self.feature_names) or len(self.std) != len(self.feature_names):
            raise ValueError("mean/std length must match feature_names")
        object.__setattr__(self, "feature_names", tuple(self.feature_names))
        object.__setattr__(self, "mean", _read_only(self.mean))
        object.__setattr__(self, "std", _read_only(self.std))
        object.__setattr__(self, "dropped_features", tuple(self.dropped_features))

    @property
    def n_features(self) -> int:
        return len(self.feature_names)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"mean": self.mean, "std": self.std},
            index=pd.Index(self.feature_names, name="feature"),
        )


def _log_abundance(features: pd.DataFrame, pseudocount: float) -> np.ndarray:
    values = features.to_numpy(dtype=float)
    shifted = values + pseudocount
    bad = ~np.isfinite(shifted) | (shifted <= 0)
    if bad.any():
        offending = features.columns[bad.any(axis=0)].tolist()
        raise ValueError(
            f"log10(x + {pseudocount:g}) undefined for features {offending[:10]}: "
            "values must be finite and greater than -pseudocount"
        )
    return np.log10(shifted)


def fit_normalization(
    features: pd.DataFrame,
    pseudocount: float = DEFAULT_PSEUDOCOUNT,
    zero_variance: ZeroVariancePolicy = "raise",
) -> NormalizationParameters:
    """
    Fit log10 + z-score parameters on a samples x features matrix.

    Args:
        features: Reference matrix (rows = samples)
        pseudocount: n0 > 0 added before the log
        zero_variance: "raise" to reject zero-variance features, "drop" to
            exclude them from the parameters

    Returns:
        Frozen NormalizationParameters

    Raises:
        DegenerateFeatureError: Zero-variance features with policy "raise", or
            every feature degenerate with policy "drop"
        ValueError: Non-positive pseudocount or values outside the log domain
    """
    if pseudocount <= 0:
        raise ValueError(f"pseudocount must be > 0, got {pseudocount}")
    if zero_variance not in ("raise", "drop"):
        raise ValueError(f"Unknown zero_variance policy: {zero_variance}")

    logged = _log_abundance(features, pseudocount)
    names = features.columns.astype(str)

    if logged.shape[0] < 2:
        raise DegenerateFeatureError(
            f"Cannot estimate variance from {logged.shape[0]} sample(s)",
            features=names.tolist(),
        )

    mean = logged.mean(axis=0)
    std = logged.std(axis=0, ddof=1)
    degenerate = ~(std > MIN_STD)
    degenerate_names = names[degenerate].tolist()

    if degenerate_names:
        if zero_variance == "raise" or len(degenerate_names) == len(names):
            raise DegenerateFeatureError("Zero-variance features", features=degenerate_names)
        logger.warning(
            f"Dropping {len(degenerate_names)} zero-variance feature(s) from normalization: "
            f"{degenerate_names[:10]}"
        )

    keep = ~degenerate
    return NormalizationParameters(
        feature_names=tuple(names[keep]),
        mean=mean[keep],
        std=std[keep],
        pseudocount=pseudocount,
        dropped_features=tuple(degenerate_names),
    )


def transform_features(features: pd.DataFrame, params: NormalizationParameters) -> pd.DataFrame:
    """
    Apply frozen parameters: ``(log10(x + n0) - mean) / std`` per feature.

    Columns not covered by ``params`` are ignored; the output has exactly
    ``params.feature_names`` as columns, in that order.

    Raises:
        AlignmentError: If fitted features are missing from ``features``
    """
    missing = [f for f in params.feature_names if f not in features.columns]
    if missing:
        raise AlignmentError(
            f"{len(missing)} normalized feature(s) absent from the matrix",
            missing_in_features=missing,
        )

    subset = features.loc[:, list(params.feature_names)]
    logged = _log_abundance(subset, params.pseudocount)
    scaled = (logged - params.mean) / params.std
    return pd.DataFrame(scaled, index=features.index, columns=list(params.feature_names))
