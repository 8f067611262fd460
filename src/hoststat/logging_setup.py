"""Logging setup for hoststat.

Reports go to stdout, so log records are written to stderr.
"""

import logging
import sys

_LOGGER_NAME = "hoststat"


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    """Attach a stderr handler to the package logger once."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("Logging configured at %s", logging.getLevelName(logger.level))
    return logger
