"""
Handler wiring for the ``mbiome_ml`` logger hierarchy.

Only the CLI attaches handlers. Every library module logs through
``logging.getLogger(__name__)`` and relies on propagation up to the
``mbiome_ml`` root configured here.
"""

import logging
import sys
from pathlib import Path

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _detach_handlers(logger: logging.Logger):
    while logger.handlers:
        handler = logger.handlers[0]
        logger.removeHandler(handler)
        handler.close()


def setup_logger(
    name: str = "mbiome_ml",
    level: int = logging.INFO,
    log_file: Path | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    (Re)configure ``name`` to write to stdout and, optionally, to ``log_file``.

    Calling it twice replaces the earlier handlers, so a command can first
    log to the console and later add its run log once the output directory
    is known.
    """
    logger = logging.getLogger(name)
    _detach_handlers(logger)
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, mode="a"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def verbosity_to_level(verbose: int) -> int:
    """Translate the number of ``-v`` flags into a level."""
    return logging.DEBUG if verbose > 0 else logging.INFO


def log_section(logger: logging.Logger, title: str, width: int = 80, char: str = "="):
    """Write ``title`` framed by two rules of ``char``."""
    rule = char * width
    for line in (rule, title, rule):
        logger.info(line)
