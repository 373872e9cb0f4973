"""
Assembles a ``TrainingConfig`` from an optional YAML file and ``key=value``
overrides given on the command line.

A YAML file may name a parent through ``_base``; the parent is read first
(relative to the child's directory) and the child's keys are layered on top.
Overrides address nested keys with dots, e.g. ``normalization.policy=global``.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mbiome_ml.config.schema import TrainingConfig

logger = logging.getLogger(__name__)

# Override keys whose values are never coerced to numbers
STRING_KEYS = frozenset({"run_id"})

_TRUE = frozenset({"true", "yes"})
_FALSE = frozenset({"false", "no"})
_NULL = frozenset({"none", "null"})


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Layer ``overlay`` onto a copy of ``base``, descending into shared sub-dicts."""
    result = dict(base)
    for key, value in overlay.items():
        current = result.get(key)
        both_dicts = isinstance(current, dict) and isinstance(value, dict)
        result[key] = _deep_merge(current, value) if both_dicts else value
    return result


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping, resolving its ``_base`` chain."""
    path = Path(file_path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text()) or {}
    parent = raw.pop("_base", None)
    if parent is None:
        return raw
    logger.debug("%s inherits from %s", path.name, parent)
    return _deep_merge(load_yaml(path.parent / parent), raw)


def _set_dotted(config_dict: dict[str, Any], dotted_key: str, value: Any):
    *parents, leaf = dotted_key.split(".")
    node = config_dict
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value


def apply_overrides(config_dict: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Write each ``dotted.key=value`` override into ``config_dict`` in place.

    Intermediate mappings are created as needed, so ``model.params.C=0.5``
    works on an empty dict. Returns the same dict for chaining.
    """
    for override in overrides:
        key, sep, value = override.partition("=")
        if not sep:
            raise ValueError(f"Invalid override format: {override}. Expected 'key=value'")
        key = key.strip()
        leaf = key.rsplit(".", 1)[-1]
        _set_dotted(config_dict, key, _parse_value(value.strip(), force_string=leaf in STRING_KEYS))
    return config_dict


def _parse_value(value_str: str, force_string: bool = False) -> Any:
    """Coerce override text: bool, None, comma list, int, float, else the raw string."""
    if force_string:
        return value_str

    lowered = value_str.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    if lowered in _NULL:
        return None
    if "," in value_str:
        return [_parse_value(item.strip()) for item in value_str.split(",")]

    for cast in (int, float):
        try:
            return cast(value_str)
        except ValueError:
            continue
    return value_str


def load_training_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> TrainingConfig:
    """
    Build and validate the training configuration.

    A relative ``outdir`` read from ``config_file`` is anchored at the file's
    directory. Pydantic errors are re-raised as ``ValueError``.
    """
    config_dict: dict[str, Any] = {}
    if config_file is not None:
        config_dict = load_yaml(config_file)
        outdir = config_dict.get("outdir")
        if outdir is not None and not Path(outdir).is_absolute():
            config_dict["outdir"] = str(Path(config_file).resolve().parent / outdir)

    apply_overrides(config_dict, overrides or [])

    try:
        return TrainingConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid training configuration:\n{e}") from e


def save_config(config: TrainingConfig, output_path: str | Path):
    """Dump the resolved configuration (JSON-compatible values) as YAML."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


def print_config_summary(config: TrainingConfig, logger: logging.Logger | None = None):
    """Log a human-readable configuration summary."""
    log = logger or logging.getLogger(__name__)
    lines = [
        "=" * 80,
        "Configuration Summary",
        "=" * 80,
        f"CV: {config.cv.folds} folds, seed={config.cv.seed}, stratify={config.cv.stratify}",
        f"Filtering: {config.filtering.method} (cutoff={config.filtering.cutoff:g})",
        f"Normalization: {config.normalization.policy}, "
        f"pseudocount={config.normalization.pseudocount:g}, "
        f"zero_variance={config.normalization.zero_variance}",
        f"Model: {config.model.regularization} {config.model.params}",
        f"Execution: n_jobs={config.execution.n_jobs}, on_fold_error={config.execution.on_fold_error}",
        "=" * 80,
    ]
    for line in lines:
        log.info(line)
