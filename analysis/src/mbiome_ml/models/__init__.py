"""
Models package for mbiome-ml.

This package contains:
- The LinearModel capability and its scikit-learn implementation
- Cross-validation orchestration and fold result merging
"""

from .linear import (
    REGULARIZATION_MODES,
    LinearModel,
    ModelFactory,
    SparseLogisticModel,
    build_logistic_regression,
    make_model_factory,
)
from .training import (
    CrossValidationResult,
    FoldResult,
    merge_fold_results,
    run_cross_validation,
)

__all__ = [
    "REGULARIZATION_MODES",
    "LinearModel",
    "ModelFactory",
    "SparseLogisticModel",
    "build_logistic_regression",
    "make_model_factory",
    "CrossValidationResult",
    "FoldResult",
    "merge_fold_results",
    "run_cross_validation",
]
