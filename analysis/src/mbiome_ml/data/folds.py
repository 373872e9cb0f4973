"""
Fold assignment for cross-validation.

Samples are assigned to folds by tiling the fold labels 1..K to the number of
samples, shuffling the tiling with a seeded generator, and handing the labels
out in input order. Fold sizes therefore differ by at most one.

The literal assignment depends on the order of the ids passed in; capture the
resulting ``FoldAssignment`` (``to_frame``/``from_frame``) to reuse it.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from ..errors import FoldAlignmentError
from .schema import FOLD_COL, ID_COL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldAssignment:
    """Mapping sample id -> fold index in [1, K]."""

    folds_by_sample: pd.Series
    n_folds: int

    def __post_init__(self):
        if self.folds_by_sample.index.duplicated().any():
            raise ValueError("Fold assignment contains duplicated sample ids")
        used = set(self.folds_by_sample.unique().tolist())
        expected = set(range(1, self.n_folds + 1))
        if not used <= expected:
            raise ValueError(
                f"Fold indices must lie in [1, {self.n_folds}], got {sorted(used - expected)}"
            )
        if used != expected:
            raise ValueError(f"Empty folds: {sorted(expected - used)}")

    @property
    def folds(self) -> list[int]:
        return list(range(1, self.n_folds + 1))

    @property
    def sample_ids(self) -> pd.Index:
        return self.folds_by_sample.index

    def held_out(self, fold: int) -> pd.Index:
        """Samples evaluated in ``fold``."""
        return self.folds_by_sample.index[self.folds_by_sample == fold]

    def training(self, fold: int) -> pd.Index:
        """Samples used to fit the model of ``fold``."""
        return self.folds_by_sample.index[self.folds_by_sample != fold]

    def sizes(self) -> dict[int, int]:
        counts = self.folds_by_sample.value_counts()
        return {f: int(counts.get(f, 0)) for f in self.folds}

    def check_covers(self, sample_ids: Sequence) -> None:
        """Raise ``FoldAlignmentError`` unless the assignment covers exactly ``sample_ids``."""
        assigned = set(self.folds_by_sample.index)
        wanted = set(sample_ids)
        if assigned != wanted:
            raise FoldAlignmentError(
                "Fold assignment does not match dataset samples",
                unassigned=sorted(map(str, wanted - assigned)),
                unknown=sorted(map(str, assigned - wanted)),
            )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {ID_COL: self.folds_by_sample.index, FOLD_COL: self.folds_by_sample.to_numpy()}
        )

    @classmethod
    def from_frame(
        cls, df: pd.DataFrame, id_col: str = ID_COL, fold_col: str = FOLD_COL
    ) -> "FoldAssignment":
        folds = pd.Series(df[fold_col].astype(int).to_numpy(), index=df[id_col], name=FOLD_COL)
        return cls(folds_by_sample=folds, n_folds=int(folds.max()))


def _tiling(n: int, n_folds: int, offset: int = 0) -> np.ndarray:
    """Fold labels 1..K repeated cyclically, starting at position ``offset``."""
    return (np.arange(offset, offset + n) % n_folds) + 1


def assign_folds(
    sample_ids: Sequence,
    n_folds: int,
    seed: int,
    labels: pd.Series | None = None,
) -> FoldAssignment:
    """
    Assign each sample to one of ``n_folds`` folds.

    Args:
        sample_ids: Sample identifiers (unique)
        n_folds: Number of folds K, 2 <= K <= N
        seed: Seed for the permutation
        labels: Optional labels indexed by sample id; when given, each class is
            spread over the folds as evenly as possible (stratified)

    Returns:
        FoldAssignment

    Raises:
        ValueError: If K is out of range or ids are duplicated
    """
    ids = pd.Index(sample_ids)
    n = len(ids)
    if ids.has_duplicates:
        raise ValueError("sample_ids must be unique")
    if n_folds < 2:
        raise ValueError(f"n_folds must be >= 2, got {n_folds}")
    if n_folds > n:
        raise ValueError(f"n_folds ({n_folds}) exceeds the number of samples ({n})")

    rng = np.random.default_rng(seed)

    if labels is None:
        fold_values = rng.permutation(_tiling(n, n_folds))
    else:
        labels = labels.loc[ids]
        fold_values = np.empty(n, dtype=int)
        offset = 0
        # Consecutive classes continue the same cycle, so overall sizes stay balanced
        for level in sorted(pd.unique(labels), key=str):
            positions = np.flatnonzero((labels == level).to_numpy())
            fold_values[positions] = rng.permutation(_tiling(len(positions), n_folds, offset))
            offset += len(positions)
        # Avoid always giving the leftover samples to the low-numbered folds
        relabel = rng.permutation(n_folds) + 1
        fold_values = relabel[fold_values - 1]

    assignment = FoldAssignment(
        folds_by_sample=pd.Series(fold_values, index=ids, name=FOLD_COL),
        n_folds=n_folds,
    )
    logger.debug("Assigned %d samples to %d folds: %s", n, n_folds, assignment.sizes())
    return assignment
