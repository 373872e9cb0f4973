"""Final model fitting, frozen prediction and export."""

from mbiome_ml.evaluation.predict import (
    FrozenClassifier,
    export_predictions,
    fit_final_model,
    load_model_bundle,
    save_model_bundle,
)

__all__ = [
    "FrozenClassifier",
    "export_predictions",
    "fit_final_model",
    "load_model_bundle",
    "save_model_bundle",
]
