"""Metrics module for model evaluation."""

from mbiome_ml.metrics.roc import (
    ROCCurve,
    auc,
    compare_predictors,
    rank_auc,
    roc_curve,
    sensitivity_at_specificity,
)

__all__ = [
    "ROCCurve",
    "auc",
    "compare_predictors",
    "rank_auc",
    "roc_curve",
    "sensitivity_at_specificity",
]
