"""
Data I/O utilities for the mbiome-ml command line.

Thin pandas wrappers that turn abundance and label tables into the frames an
``AbundanceDataset`` expects. Profiles exported from taxonomic profilers are
usually stored with features in rows; pass ``features_in_rows=True`` for those.
"""

import logging
from pathlib import Path

import pandas as pd

from .schema import ID_COL, LABEL_COL

logger = logging.getLogger(__name__)


def _read_table(filepath: str | Path, index_col=None) -> pd.DataFrame:
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    suffix = filepath.suffix.lower()
    if suffix == ".parquet":
        df = pd.read_parquet(filepath)
        if index_col is not None:
            df = df.set_index(df.columns[index_col] if isinstance(index_col, int) else index_col)
    elif suffix in (".tsv", ".txt"):
        df = pd.read_csv(filepath, sep="\t", index_col=index_col)
    else:
        df = pd.read_csv(filepath, index_col=index_col)

    logger.info(f"Loaded {filepath.name}: {len(df):,} rows × {len(df.columns):,} columns")
    return df


def read_feature_table(filepath: str | Path, features_in_rows: bool = False) -> pd.DataFrame:
    """
    Read an abundance table into a samples x features matrix.

    The first column holds the row identifiers (sample ids, or feature names
    when ``features_in_rows`` is True).

    Args:
        filepath: CSV, TSV or Parquet file
        features_in_rows: True if rows are features and columns are samples

    Returns:
        DataFrame indexed by sample id with one column per feature
    """
    df = _read_table(filepath, index_col=0)
    if features_in_rows:
        df = df.T
    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)
    df.index.name = ID_COL
    return df


def read_label_table(
    filepath: str | Path,
    id_col: str = ID_COL,
    label_col: str = LABEL_COL,
    extra_cols: list[str] | None = None,
) -> tuple[pd.Series, pd.DataFrame]:
    """
    Read sample labels (and optional extra columns such as a baseline score).

    Args:
        filepath: CSV, TSV or Parquet file with one row per sample
        id_col: Sample identifier column
        label_col: Outcome column
        extra_cols: Additional columns to return alongside the labels

    Returns:
        (labels, extras): labels Series indexed by sample id, and a DataFrame
        with the requested extra columns (empty if none requested). Rows with
        a missing label are kept; see :func:`drop_unlabeled`.

    Raises:
        ValueError: If required columns are missing
    """
    df = _read_table(filepath)
    extra_cols = list(extra_cols or [])
    missing = [c for c in [id_col, label_col, *extra_cols] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in {Path(filepath).name}: {missing}")

    df[id_col] = df[id_col].astype(str)
    df = df.set_index(id_col)

    labels = df[label_col].rename(LABEL_COL)
    return labels, df[extra_cols]


def drop_unlabeled(
    features: pd.DataFrame,
    labels: pd.Series,
    extras: pd.DataFrame | None = None,
) -> tuple[pd.DataFrame, pd.Series, pd.DataFrame | None]:
    """
    Remove samples whose label is missing from every table that holds them.

    Samples present in only one table are left alone so that
    ``AbundanceDataset.from_frames`` still reports them as misaligned.

    Returns:
        (features, labels, extras) without the unlabeled sample ids
    """
    unlabeled = labels.index[labels.isna()]
    if unlabeled.empty:
        return features, labels, extras

    logger.warning(f"Dropping {len(unlabeled)} sample(s) without a label: {unlabeled[:10].tolist()}")
    features = features.drop(index=features.index.intersection(unlabeled))
    labels = labels.drop(index=unlabeled)
    if extras is not None:
        extras = extras.drop(index=extras.index.intersection(unlabeled))
    return features, labels, extras
