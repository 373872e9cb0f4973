"""
Seeding of the process-wide RNGs.

Folds and estimators never read the global RNGs; they receive their seeds
from ``CVConfig.seed`` and ``ModelConfig.random_state``. Setting SEED_GLOBAL
pins ``random`` and ``np.random`` as well, which only matters for code that
draws from them implicitly.
"""

import logging
import os
import random

import numpy as np

logger = logging.getLogger(__name__)

ENV_VAR = "SEED_GLOBAL"
MAX_SEED = 2**32 - 1


def set_random_seed(seed: int):
    """Seed both ``random`` and the legacy ``np.random`` state with ``seed``."""
    for seeder in (random.seed, np.random.seed):
        seeder(seed)


def _seed_from_env() -> int | None:
    raw = os.environ.get(ENV_VAR, "").strip()
    if not raw:
        return None
    if not raw.lstrip("-").isdigit():
        logger.warning("Ignoring %s=%r: not an integer.", ENV_VAR, raw)
        return None

    value = int(raw)
    if not 0 <= value <= MAX_SEED:
        logger.warning("Ignoring %s=%d: numpy seeds must lie in [0, %d].", ENV_VAR, value, MAX_SEED)
        return None
    return value


def apply_seed_global() -> int | None:
    """
    Seed the global RNGs from SEED_GLOBAL when it holds a usable value.

    Returns:
        The applied seed, or None when the variable is unset, blank,
        non-numeric or outside numpy's seed range.
    """
    seed = _seed_from_env()
    if seed is not None:
        set_random_seed(seed)
        logger.info("Global RNGs seeded from %s=%d.", ENV_VAR, seed)
    return seed
