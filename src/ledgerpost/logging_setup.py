"""Logging configuration for the ledgerpost CLI.

Library modules only create module-level loggers; handlers are attached here
by the command-line entry point.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO
NOISY_LOGGERS = ["sqlalchemy.engine", "sqlalchemy.pool"]


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure the ``ledgerpost`` logger hierarchy.

    Args:
        level: Level for the ledgerpost loggers and the stderr handler

    Returns:
        The configured ``ledgerpost`` logger
    """
    logger = logging.getLogger("ledgerpost")
    logger.setLevel(level)

    # Avoid stacking handlers when called repeatedly (e.g. in tests)
    for handler in list(logger.handlers):
        if getattr(handler, "_ledgerpost_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler._ledgerpost_handler = True
    logger.addHandler(handler)
    logger.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def verbosity_to_level(verbose: int) -> int:
    """Map a repeated -v count to a logging level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
