"""
``mbiome`` command group.

``mbiome train`` cross-validates the sparse classifier and writes the run
directory; ``mbiome predict`` scores a new cohort with a saved bundle.
Command bodies live in :mod:`mbiome_ml.cli.train` and are imported lazily so
``mbiome --help`` stays fast.
"""

import click

from mbiome_ml import __version__

EXISTING_FILE = click.Path(exists=True, dir_okay=False)

features_in_rows_option = click.option(
    "--features-in-rows",
    is_flag=True,
    help="The abundance table is features x samples instead of samples x features.",
)


@click.group()
@click.version_option(__version__, prog_name="mbiome")
@click.option("-v", "--verbose", count=True, help="Log at DEBUG level.")
@click.pass_context
def cli(ctx, verbose):
    """Sparse log-linear classifiers for microbiome relative abundances."""
    from mbiome_ml.utils.random import apply_seed_global

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["seed_global"] = apply_seed_global()


@cli.command("train")
@click.option("-c", "--config", type=EXISTING_FILE, help="YAML training configuration.")
@click.option("--features", "features_file", type=EXISTING_FILE, required=True, help="Abundance table (CSV, TSV or Parquet).")
@click.option("--labels", "labels_file", type=EXISTING_FILE, required=True, help="Per-sample outcome table.")
@click.option("--id-col", default="sample_id", show_default=True, help="Column of --labels holding sample ids.")
@click.option("--label-col", default="label", show_default=True, help="Column of --labels holding the outcome.")
@click.option("--baseline-col", multiple=True, help="Column of --labels scored as a competing predictor; may repeat.")
@features_in_rows_option
@click.option("--folds-file", type=EXISTING_FILE, help="folds.csv of an earlier run to reuse its partition.")
@click.option("--outdir", type=click.Path(file_okay=False), default=None, help="Run directory; takes precedence over the config.")
@click.option("--override", multiple=True, help="Config override as dotted.key=value; may repeat.")
@click.pass_context
def train(ctx, config, override, **kwargs):
    """Cross-validate, then write out-of-fold scores, ROC, coefficients and the final model."""
    from mbiome_ml.cli.train import run_train

    run_train(config_file=config, overrides=list(override), verbose=ctx.obj.get("verbose", 0), **kwargs)


@cli.command("predict")
@click.option("--model", "model_file", type=EXISTING_FILE, required=True, help="model.joblib written by 'mbiome train'.")
@click.option("--features", "features_file", type=EXISTING_FILE, required=True, help="Abundance table of the cohort to score.")
@features_in_rows_option
@click.option("--out", "out_file", type=click.Path(dir_okay=False), required=True, help="Destination CSV of sample_id,score.")
@click.pass_context
def predict(ctx, **kwargs):
    """Score a cohort with the saved normalization parameters and weights."""
    from mbiome_ml.cli.train import run_predict

    run_predict(verbose=ctx.obj.get("verbose", 0), **kwargs)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
