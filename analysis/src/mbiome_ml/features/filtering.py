"""Unsupervised abundance / prevalence filtering of features.

Removes features too rare to carry signal before normalization. Both methods
look at the feature matrix only, never at labels.

- ``abundance``: keep features whose maximum relative abundance >= cutoff
- ``prevalence``: keep features present (> 0) in at least ``cutoff`` of samples
"""

import logging
from typing import Literal

import pandas as pd

logger = logging.getLogger(__name__)

FilterMethod = Literal["none", "abundance", "prevalence"]


def filter_features(
    features: pd.DataFrame,
    method: FilterMethod = "none",
    cutoff: float = 0.0,
) -> pd.DataFrame:
    """Drop low-abundance or low-prevalence features.

    Args:
        features: Samples x features matrix
        method: "none", "abundance" or "prevalence"
        cutoff: Minimum maximum-abundance, or minimum fraction of samples with
            a non-zero value (must be in [0, 1] for prevalence)

    Returns:
        Filtered copy of ``features`` (column order preserved)

    Raises:
        ValueError: Unknown method, invalid cutoff, or every feature removed
    """
    if method == "none":
        return features
    if cutoff < 0:
        raise ValueError(f"cutoff must be >= 0, got {cutoff}")

    if method == "abundance":
        keep = features.max(axis=0) >= cutoff
    elif method == "prevalence":
        if cutoff > 1:
            raise ValueError(f"prevalence cutoff must be in [0, 1], got {cutoff}")
        keep = (features > 0).mean(axis=0) >= cutoff
    else:
        raise ValueError(f"Unknown filter method: {method}. Expected 'none', 'abundance' or 'prevalence'.")

    n_removed = int((~keep).sum())
    if n_removed == len(keep):
        raise ValueError(f"{method} filter with cutoff={cutoff} removed every feature")

    logger.info(
        f"[filter] {method} >= {cutoff:g}: kept {int(keep.sum())}/{len(keep)} features "
        f"({n_removed} removed)"
    )
    return features.loc[:, keep]
