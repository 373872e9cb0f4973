"""
End-to-end training workflow.

filter -> assign folds -> cross-validate (normalize + fit + score per fold)
-> evaluate out-of-fold predictions (ROC/AUC, baselines) -> aggregate
coefficients -> optionally fit a frozen final model on all samples.

AUC and feature importance are only computed from a complete
cross-validation result; an incomplete run (skipped folds) reports which
samples lack predictions and leaves both unset.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from .config.schema import TrainingConfig
from .config.validation import validate_training_config
from .data.dataset import AbundanceDataset
from .data.folds import FoldAssignment, assign_folds
from .evaluation.predict import (
    FrozenClassifier,
    export_predictions,
    fit_final_model,
    save_model_bundle,
)
from .features.filtering import filter_features
from .features.importance import aggregate_importance, importance_table, top_k
from .metrics.roc import ROCCurve, compare_predictors, roc_curve, sensitivity_at_specificity
from .models.linear import ModelFactory, make_model_factory
from .models.training import CrossValidationResult, run_cross_validation
from .utils.serialization import save_json

logger = logging.getLogger(__name__)

MODEL_PREDICTOR = "model"


@dataclass(frozen=True, eq=False)
class TrainingReport:
    """Everything a training run produces."""

    dataset: AbundanceDataset
    cv_result: CrossValidationResult
    roc: ROCCurve | None = None
    importance: pd.DataFrame | None = None
    top_features: list[tuple[str, float]] | None = None
    comparison: pd.DataFrame | None = None
    final_model: FrozenClassifier | None = None
    config_issues: list[str] = field(default_factory=list)

    @property
    def auc(self) -> float | None:
        return None if self.roc is None else self.roc.auc

    def metrics(self, target_specificity: float = 0.9) -> dict:
        """JSON-ready summary of the run."""
        cv = self.cv_result
        summary = {
            **self.dataset.summary(),
            "n_folds": cv.folds.n_folds,
            "fold_sizes": cv.folds.sizes(),
            "normalize_policy": cv.normalize_policy,
            "complete": cv.is_complete,
            "failed_folds": [
                {"fold": r.fold, "error": type(r.error).__name__, "message": str(r.error)}
                for r in cv.failures
            ],
            "missing_samples": [str(s) for s in cv.missing_samples],
            "auc": self.auc,
            "top_features": self.top_features,
            "elapsed_sec": cv.elapsed_sec,
        }
        if self.roc is not None:
            summary["sensitivity_at_specificity"] = {
                "target_specificity": target_specificity,
                "sensitivity": sensitivity_at_specificity(self.roc, target_specificity),
            }
        if self.comparison is not None:
            summary["comparison"] = self.comparison.to_dict(orient="records")
        return summary


def default_model_factory(config: TrainingConfig) -> ModelFactory:
    params = dict(config.model.params)
    params.setdefault("random_state", config.cv.seed)
    return make_model_factory(config.model.regularization, **params)


def run_training(
    dataset: AbundanceDataset,
    config: TrainingConfig,
    model_factory: ModelFactory | None = None,
    folds: FoldAssignment | None = None,
    baselines: dict[str, pd.Series] | None = None,
) -> TrainingReport:
    """
    Run the full cross-validated training and evaluation workflow.

    Args:
        dataset: Aligned raw abundances and labels
        config: Training configuration
        model_factory: Factory for fresh LinearModels (default: sparse
            logistic regression built from ``config.model``)
        folds: Previously captured fold assignment to reuse (default: assign
            from ``config.cv``)
        baselines: Extra predictors (name -> Series(sample id -> score)) to
            compare with the model, e.g. a clinical test

    Returns:
        TrainingReport
    """
    issues = validate_training_config(config, dataset.labels)

    filtered = filter_features(dataset.features, config.filtering.method, config.filtering.cutoff)
    if filtered.shape[1] != dataset.features.shape[1]:
        dataset = dataset.with_features(filtered)

    if folds is None:
        folds = assign_folds(
            dataset.sample_ids,
            config.cv.folds,
            config.cv.seed,
            labels=dataset.labels if config.cv.stratify else None,
        )
    logger.info(f"Fold sizes: {folds.sizes()}")

    factory = model_factory or default_model_factory(config)

    cv_result = run_cross_validation(
        dataset,
        folds,
        factory,
        normalize_policy=config.normalization.policy,
        pseudocount=config.normalization.pseudocount,
        zero_variance=config.normalization.zero_variance,
        on_fold_error=config.execution.on_fold_error,
        n_jobs=config.execution.n_jobs,
        backend=config.execution.backend,
    )

    roc = importance = top = comparison = None
    if cv_result.is_complete:
        roc = roc_curve(cv_result.predictions, dataset.labels, dataset.positive_label)
        logger.info(f"Out-of-fold AUC: {roc.auc:.4f}")

        importance = importance_table(cv_result.fold_weights, config.evaluation.selection_threshold)
        top = top_k(aggregate_importance(cv_result.fold_weights), config.evaluation.top_k)

        predictors = {MODEL_PREDICTOR: cv_result.predictions}
        predictors.update(baselines or {})
        comparison = compare_predictors(
            predictors,
            dataset.labels,
            dataset.positive_label,
            config.evaluation.target_specificity,
        )
    else:
        logger.warning(
            "Cross-validation incomplete: AUC and feature importance withheld "
            f"({len(cv_result.missing_samples)} samples without prediction)"
        )

    final_model = None
    if config.fit_final_model:
        final_model = fit_final_model(
            dataset,
            factory,
            config.normalization.pseudocount,
            config.normalization.zero_variance,
        )

    return TrainingReport(
        dataset=dataset,
        cv_result=cv_result,
        roc=roc,
        importance=importance,
        top_features=top,
        comparison=comparison,
        final_model=final_model,
        config_issues=issues,
    )


def save_training_outputs(report: TrainingReport, config: TrainingConfig, outdir: str | Path) -> dict[str, Path]:
    """Write predictions, folds, coefficients, importance, ROC and metrics.

    Returns:
        Mapping artifact name -> written path
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    cv = report.cv_result
    paths: dict[str, Path] = {}

    paths["predictions"] = outdir / "predictions.csv"
    export_predictions(
        cv.predictions,
        paths["predictions"],
        labels=report.dataset.labels,
        folds=cv.folds.folds_by_sample,
    )

    paths["folds"] = outdir / "folds.csv"
    cv.folds.to_frame().to_csv(paths["folds"], index=False)

    paths["coefficients"] = outdir / "coefficients.csv"
    cv.coefficients.to_csv(paths["coefficients"])

    if report.importance is not None:
        paths["importance"] = outdir / "importance.csv"
        report.importance.to_csv(paths["importance"], index=False)

    if report.roc is not None:
        paths["roc_curve"] = outdir / "roc_curve.csv"
        report.roc.to_frame().to_csv(paths["roc_curve"], index=False)

    if report.comparison is not None:
        paths["comparison"] = outdir / "comparison.csv"
        report.comparison.to_csv(paths["comparison"], index=False)

    paths["metrics"] = outdir / "metrics.json"
    save_json(report.metrics(config.evaluation.target_specificity), paths["metrics"])

    if report.final_model is not None:
        paths["model"] = outdir / "model.joblib"
        save_model_bundle(
            report.final_model,
            paths["model"],
            metadata={"run_id": config.run_id, "config": config.model_dump(mode="json")},
        )

    for name, path in paths.items():
        logger.info(f"Wrote {name}: {path}")
    return paths
