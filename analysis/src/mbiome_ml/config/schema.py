"""
Configuration schema for the mbiome-ml pipeline.

Defines Pydantic models for all pipeline configuration parameters.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..data.schema import DEFAULT_PSEUDOCOUNT

# ============================================================================
# Cross-Validation Configuration
# ============================================================================


class CVConfig(BaseModel):
    """Configuration for fold assignment."""

    folds: int = Field(default=10, ge=2)
    seed: int = Field(default=0, ge=0)
    stratify: bool = False


# ============================================================================
# Feature Preprocessing Configuration
# ============================================================================


class FilterConfig(BaseModel):
    """Unsupervised feature filtering applied before normalization."""

    method: Literal["none", "abundance", "prevalence"] = "none"
    cutoff: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="after")
    def validate_cutoff(self):
        if self.method == "prevalence" and self.cutoff > 1.0:
            raise ValueError(f"prevalence cutoff must be in [0, 1], got {self.cutoff}")
        return self


class NormalizationConfig(BaseModel):
    """Log10 + z-score normalization settings."""

    policy: Literal["global", "per_fold"] = "per_fold"
    pseudocount: float = Field(default=DEFAULT_PSEUDOCOUNT, gt=0.0)
    zero_variance: Literal["raise", "drop"] = "raise"


# ============================================================================
# Model Configuration
# ============================================================================


class ModelConfig(BaseModel):
    """Sparse linear model settings.

    ``regularization`` and ``params`` are handed to the model factory as is;
    the cross-validation loop does not interpret them.
    """

    regularization: str = "lasso"
    params: dict[str, Any] = Field(
        default_factory=lambda: {"C": 1.0, "class_weight": "balanced", "max_iter": 5000}
    )


# ============================================================================
# Execution / Evaluation Configuration
# ============================================================================


class ExecutionConfig(BaseModel):
    """Fold execution settings."""

    n_jobs: int = 1
    backend: Literal["loky", "threading"] = "loky"
    on_fold_error: Literal["abort", "skip"] = "abort"

    @model_validator(mode="after")
    def validate_n_jobs(self):
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError(f"n_jobs must be -1 or >= 1, got {self.n_jobs}")
        return self


class EvaluationConfig(BaseModel):
    """Evaluation and reporting settings."""

    top_k: int = Field(default=20, ge=0)
    target_specificity: float = Field(default=0.9, ge=0.0, le=1.0)
    selection_threshold: float = Field(default=0.0, ge=0.0)


class StrictnessConfig(BaseModel):
    """How configuration issues are reported."""

    level: Literal["off", "warn", "error"] = "warn"
    min_class_per_fold: int = Field(default=2, ge=1)


# ============================================================================
# Top-level Training Configuration
# ============================================================================


class TrainingConfig(BaseModel):
    """Full configuration of a training run."""

    model_config = ConfigDict(protected_namespaces=())

    run_id: str | None = None
    positive_label: str | int | bool | None = None
    outdir: Path = Field(default=Path("results"))
    fit_final_model: bool = True

    cv: CVConfig = Field(default_factory=CVConfig)
    filtering: FilterConfig = Field(default_factory=FilterConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    strictness: StrictnessConfig = Field(default_factory=StrictnessConfig)
