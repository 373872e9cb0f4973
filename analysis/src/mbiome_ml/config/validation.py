"""
Configuration validation and safety checks.

Flags leakage-prone or fragile settings. Depending on the strictness level the
issues are ignored, emitted as warnings, or raised.
"""

import warnings

import pandas as pd

from mbiome_ml.config.schema import TrainingConfig


class ConfigValidationError(Exception):
    """Raised when configuration validation fails in strict mode."""

    pass


class ConfigValidationWarning(UserWarning):
    """Warning for potential configuration issues."""

    pass


def validate_training_config(config: TrainingConfig, labels: pd.Series | None = None) -> list[str]:
    """
    Validate training configuration for potential leakage and inconsistencies.

    Args:
        config: TrainingConfig instance
        labels: Optional labels, enables checks against the actual class sizes

    Returns:
        List of issue messages (also reported according to strictness)
    """
    issues = []

    if config.normalization.policy == "global":
        issues.append(
            "normalization.policy='global' fits normalization on all samples before CV; "
            "held-out folds leak population statistics. Use 'per_fold' for unbiased estimates."
        )

    if config.model.regularization not in ("lasso", "elasticnet"):
        issues.append(
            f"model.regularization='{config.model.regularization}' does not produce sparse "
            "coefficients; feature importance will include every feature."
        )

    if labels is not None:
        counts = labels.value_counts()
        n_samples = int(counts.sum())
        if config.cv.folds > n_samples:
            issues.append(f"cv.folds={config.cv.folds} exceeds the number of samples ({n_samples}).")
        smallest = int(counts.min()) if len(counts) else 0
        per_fold = smallest / config.cv.folds
        if per_fold < config.strictness.min_class_per_fold:
            issues.append(
                f"Smallest class has {smallest} samples: about {per_fold:.1f} per fold "
                f"with cv.folds={config.cv.folds}"
                + ("" if config.cv.stratify else " (consider cv.stratify=true)")
                + "."
            )

    _handle_issues(issues, config.strictness.level, "Training configuration")
    return issues


def _handle_issues(issues: list[str], strictness: str, context: str):
    """
    Handle validation issues based on strictness level.

    Args:
        issues: List of issue messages
        strictness: "off", "warn", or "error"
        context: Context string for error messages
    """
    if not issues or strictness == "off":
        return

    message = f"{context} validation issues:\n" + "\n".join(f"  - {i}" for i in issues)

    if strictness == "error":
        raise ConfigValidationError(message)
    warnings.warn(message, ConfigValidationWarning, stacklevel=3)
