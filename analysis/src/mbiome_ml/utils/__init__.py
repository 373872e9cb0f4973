"""Utility functions for mbiome-ml."""

from mbiome_ml.utils.logging import log_section, setup_logger, verbosity_to_level
from mbiome_ml.utils.random import apply_seed_global, set_random_seed
from mbiome_ml.utils.serialization import (
    library_versions,
    load_joblib,
    load_json,
    save_joblib,
    save_json,
)

__all__ = [
    "setup_logger",
    "log_section",
    "verbosity_to_level",
    "set_random_seed",
    "apply_seed_global",
    "library_versions",
    "save_joblib",
    "load_joblib",
    "save_json",
    "load_json",
]
