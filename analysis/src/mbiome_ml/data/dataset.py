"""
Feature/label container with id-keyed alignment.

An ``AbundanceDataset`` is the only way feature matrices and labels enter the
training loop. Construction joins both inputs on sample id and fails fast when
the id sets differ, so downstream code never relies on positional alignment.

Conventions:
- Feature matrix: rows = samples (index = sample id), columns = features
- Labels: Series indexed by sample id with exactly two distinct levels
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..errors import AlignmentError

logger = logging.getLogger(__name__)


def resolve_positive_label(labels: pd.Series, positive_label=None):
    """Pick the positive class among the label levels.

    Args:
        labels: Label series (any dtype)
        positive_label: Explicit positive level, or None to infer

    Returns:
        The positive level

    Raises:
        ValueError: If ``positive_label`` is not a level, or it cannot be
            inferred (levels other than 0/1 or booleans)
    """
    levels = pd.unique(labels.dropna())
    if positive_label is not None:
        if positive_label not in set(levels.tolist()):
            raise ValueError(
                f"positive_label={positive_label!r} not found in labels "
                f"(levels: {sorted(map(str, levels))})"
            )
        return positive_label

    if pd.api.types.is_bool_dtype(labels):
        return True
    if set(levels.tolist()) <= {0, 1}:
        return 1
    raise ValueError(
        f"Cannot infer the positive class from levels {sorted(map(str, levels))}; "
        "set positive_label explicitly."
    )


def _check_unique(index: pd.Index, what: str) -> None:
    duplicated = index[index.duplicated()].unique().tolist()
    if duplicated:
        raise ValueError(f"Duplicate {what}: {duplicated[:10]}")


@dataclass(frozen=True)
class AbundanceDataset:
    """Aligned feature matrix and binary labels.

    Use :meth:`from_frames` to build one; it validates alignment and encodes
    the labels.

    Attributes:
        features: Samples x features matrix, row order matches ``labels``
        labels: Original label levels indexed by sample id
        positive_label: Level treated as the positive class
    """

    features: pd.DataFrame
    labels: pd.Series
    positive_label: object

    @classmethod
    def from_frames(
        cls,
        features: pd.DataFrame,
        labels: pd.Series,
        positive_label=None,
    ) -> "AbundanceDataset":
        """Join features and labels on sample id.

        Raises:
            AlignmentError: If the sample-id sets differ
            ValueError: On duplicated ids/features, missing labels, non-numeric
                or non-finite features, or a label count other than two
        """
        _check_unique(features.index, "sample ids in features")
        _check_unique(features.columns, "feature names")
        _check_unique(labels.index, "sample ids in labels")

        unlabeled = labels.index[labels.isna()].tolist()
        if unlabeled:
            raise ValueError(
                f"{len(unlabeled)} sample(s) have no label: {unlabeled[:10]}. "
                "Drop them before building the dataset."
            )

        feature_ids = set(features.index)
        label_ids = set(labels.index)
        if feature_ids != label_ids:
            raise AlignmentError(
                "Feature matrix and labels cover different samples",
                missing_in_features=sorted(map(str, label_ids - feature_ids)),
                missing_in_labels=sorted(map(str, feature_ids - label_ids)),
            )

        non_numeric = [c for c in features.columns if not pd.api.types.is_numeric_dtype(features[c])]
        if non_numeric:
            raise ValueError(f"Non-numeric feature columns: {non_numeric[:10]}")

        values = features.to_numpy(dtype=float)
        if not np.isfinite(values).all():
            bad = features.columns[~np.isfinite(values).all(axis=0)].tolist()
            raise ValueError(f"Missing or non-finite values in features: {bad[:10]}")

        levels = pd.unique(labels)
        if len(levels) != 2:
            raise ValueError(
                f"Labels must have exactly two classes, found {len(levels)}: "
                f"{sorted(map(str, levels))}"
            )
        positive = resolve_positive_label(labels, positive_label)

        aligned = features.loc[labels.index].astype(float)
        logger.debug(
            "Aligned %d samples x %d features (positive class: %r)",
            aligned.shape[0],
            aligned.shape[1],
            positive,
        )
        return cls(features=aligned, labels=labels.copy(), positive_label=positive)

    @property
    def sample_ids(self) -> pd.Index:
        return self.labels.index

    @property
    def feature_names(self) -> pd.Index:
        return self.features.columns

    @property
    def y(self) -> pd.Series:
        """Labels encoded as 0/1 (1 = positive class)."""
        return (self.labels == self.positive_label).astype(int)

    @property
    def n_positive(self) -> int:
        return int(self.y.sum())

    @property
    def n_negative(self) -> int:
        return int(len(self.y) - self.y.sum())

    def with_features(self, features: pd.DataFrame) -> "AbundanceDataset":
        """Return a dataset sharing labels but with a different feature matrix."""
        return AbundanceDataset.from_frames(features, self.labels, self.positive_label)

    def summary(self) -> dict:
        return {
            "n_samples": int(len(self.labels)),
            "n_features": int(self.features.shape[1]),
            "n_positive": self.n_positive,
            "n_negative": self.n_negative,
            "positive_label": str(self.positive_label),
        }
