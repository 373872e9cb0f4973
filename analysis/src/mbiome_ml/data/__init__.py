"""Data loading, alignment and fold assignment."""

from mbiome_ml.data.dataset import AbundanceDataset, resolve_positive_label
from mbiome_ml.data.folds import FoldAssignment, assign_folds
from mbiome_ml.data.io import drop_unlabeled, read_feature_table, read_label_table
from mbiome_ml.data.schema import (
    DEFAULT_PSEUDOCOUNT,
    FOLD_COL,
    ID_COL,
    LABEL_COL,
    MIN_STD,
    SCORE_COL,
)

__all__ = [
    "AbundanceDataset",
    "resolve_positive_label",
    "FoldAssignment",
    "assign_folds",
    "read_feature_table",
    "read_label_table",
    "drop_unlabeled",
    "DEFAULT_PSEUDOCOUNT",
    "FOLD_COL",
    "ID_COL",
    "LABEL_COL",
    "MIN_STD",
    "SCORE_COL",
]
