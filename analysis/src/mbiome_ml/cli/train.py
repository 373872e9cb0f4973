"""
CLI implementation for the train and predict commands.

Thin wrappers that load tables, resolve the configuration and hand off to
``mbiome_ml.pipeline``.
"""

import logging
from pathlib import Path

import click
import pandas as pd

from mbiome_ml.config.loader import load_training_config, print_config_summary, save_config
from mbiome_ml.data.dataset import AbundanceDataset
from mbiome_ml.data.folds import FoldAssignment
from mbiome_ml.data.io import drop_unlabeled, read_feature_table, read_label_table
from mbiome_ml.errors import MbiomeMLError
from mbiome_ml.evaluation.predict import export_predictions, load_model_bundle
from mbiome_ml.pipeline import run_training, save_training_outputs
from mbiome_ml.utils.logging import log_section, setup_logger, verbosity_to_level


def run_train(
    config_file: str | None,
    features_file: str,
    labels_file: str,
    id_col: str = "sample_id",
    label_col: str = "label",
    baseline_col: tuple[str, ...] = (),
    features_in_rows: bool = False,
    folds_file: str | None = None,
    outdir: str | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> dict[str, Path]:
    """
    Run cross-validated training from files.

    Returns:
        Mapping artifact name -> written path
    """
    logger = setup_logger("mbiome_ml", level=verbosity_to_level(verbose))
    log_section(logger, "mbiome-ml Training")

    all_overrides = list(overrides or [])
    if outdir is not None:
        all_overrides.append(f"outdir={outdir}")

    try:
        config = load_training_config(config_file, all_overrides)
    except (ValueError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e
    print_config_summary(config, logger)

    out_path = Path(config.outdir)
    out_path.mkdir(parents=True, exist_ok=True)
    logger = setup_logger(
        "mbiome_ml", level=verbosity_to_level(verbose), log_file=out_path / "train.log"
    )

    try:
        log_section(logger, "Loading Data")
        features = read_feature_table(features_file, features_in_rows=features_in_rows)
        labels, extras = read_label_table(
            labels_file, id_col=id_col, label_col=label_col, extra_cols=list(baseline_col)
        )
        features, labels, extras = drop_unlabeled(features, labels, extras)
        dataset = AbundanceDataset.from_frames(features, labels, config.positive_label)
        logger.info(f"Dataset: {dataset.summary()}")

        folds = None
        if folds_file is not None:
            folds = FoldAssignment.from_frame(pd.read_csv(folds_file, dtype={"sample_id": str}))
            logger.info(f"Reusing fold assignment from {folds_file}")

        baselines = {col: pd.to_numeric(extras[col], errors="coerce") for col in baseline_col}

        log_section(logger, "Cross-Validation")
        report = run_training(dataset, config, folds=folds, baselines=baselines)

        log_section(logger, "Writing Outputs")
        save_config(config, out_path / "config_resolved.yaml")
        paths = save_training_outputs(report, config, out_path)
    except (MbiomeMLError, ValueError) as e:
        logger.error(str(e))
        raise click.ClickException(str(e)) from e

    if report.auc is not None:
        click.echo(f"Out-of-fold AUC: {report.auc:.4f}")
    else:
        click.echo("Cross-validation incomplete: AUC withheld (see metrics.json)")
    return paths


def run_predict(
    model_file: str,
    features_file: str,
    out_file: str,
    features_in_rows: bool = False,
    verbose: int = 0,
) -> pd.DataFrame:
    """Score new samples with a saved model bundle."""
    logger = setup_logger("mbiome_ml", level=verbosity_to_level(verbose))
    log_section(logger, "mbiome-ml Prediction")

    try:
        classifier = load_model_bundle(model_file)
        features = read_feature_table(features_file, features_in_rows=features_in_rows)
        scores = classifier.predict(features)
    except (MbiomeMLError, ValueError) as e:
        logger.error(str(e))
        raise click.ClickException(str(e)) from e

    logging.getLogger(__name__).info(f"Scored {len(scores)} samples")
    return export_predictions(scores, out_file)
