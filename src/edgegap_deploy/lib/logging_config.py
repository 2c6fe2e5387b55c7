"""Logging setup shared by the edgegap CLI commands."""

from __future__ import annotations

import logging

LOGGER_NAME = "edgegap_deploy"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s - %(message)s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the package logger.

    Args:
        verbose: Enable DEBUG level output
        quiet: Only show warnings and errors (wins over verbose)
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # StreamHandler binds sys.stderr when created
    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    # Docker SDK and urllib3 are chatty at DEBUG
    for noisy in ("docker", "urllib3"):
        logging.getLogger(noisy).setLevel(
            logging.DEBUG if verbose and not quiet else logging.WARNING
        )


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the package namespace."""
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
