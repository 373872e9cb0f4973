"""Configuration management for mbiome-ml."""

from mbiome_ml.config.loader import (
    apply_overrides,
    load_training_config,
    load_yaml,
    save_config,
)
from mbiome_ml.config.schema import (
    CVConfig,
    EvaluationConfig,
    ExecutionConfig,
    FilterConfig,
    ModelConfig,
    NormalizationConfig,
    StrictnessConfig,
    TrainingConfig,
)
from mbiome_ml.config.validation import (
    ConfigValidationError,
    ConfigValidationWarning,
    validate_training_config,
)

__all__ = [
    "apply_overrides",
    "load_training_config",
    "load_yaml",
    "save_config",
    "CVConfig",
    "EvaluationConfig",
    "ExecutionConfig",
    "FilterConfig",
    "ModelConfig",
    "NormalizationConfig",
    "StrictnessConfig",
    "TrainingConfig",
    "ConfigValidationError",
    "ConfigValidationWarning",
    "validate_training_config",
]
