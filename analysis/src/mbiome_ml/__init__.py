"""
mbiome-ml: cross-validated sparse classifiers for microbiome profiles

Frozen log/z-score normalization of relative abundances, seeded fold
assignment, out-of-fold training of sparse linear models and tie-aware
ROC/AUC evaluation.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from mbiome_ml import (  # noqa: E402
    config,
    data,
    errors,
    evaluation,
    features,
    metrics,
    models,
    pipeline,
    utils,
)

__all__ = [
    "__version__",
    "config",
    "data",
    "errors",
    "evaluation",
    "features",
    "metrics",
    "models",
    "pipeline",
    "utils",
]
