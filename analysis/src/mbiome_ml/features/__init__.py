"""Feature filtering, normalization and importance aggregation."""

from mbiome_ml.features.filtering import filter_features
from mbiome_ml.features.importance import (
    aggregate_importance,
    importance_table,
    selection_frequencies,
    top_k,
    weights_matrix,
)
from mbiome_ml.features.normalization import (
    NormalizationParameters,
    fit_normalization,
    transform_features,
)

__all__ = [
    "filter_features",
    "aggregate_importance",
    "importance_table",
    "selection_frequencies",
    "top_k",
    "weights_matrix",
    "NormalizationParameters",
    "fit_normalization",
    "transform_features",
]
