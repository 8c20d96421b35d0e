"""Logging configuration for Imposter."""

from __future__ import annotations
import logging
import sys
from pathlib import Path


def setup_logger(verbose: bool = False, log_file: str | Path | None = None) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show DEBUG records on the console, otherwise WARNING and up
        log_file: If given, also write detailed records to this file

    Returns:
        Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose or log_file else logging.INFO)

    # Clear any existing handlers
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )
    simple_formatter = logging.Formatter("%(levelname)s: %(message)s")

    # Console: only our own records, so third-party chatter stays out of play
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(detailed_formatter if verbose else simple_formatter)
    console_handler.addFilter(lambda record: record.name.startswith("imposter"))
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)
            logger.info("Logging to file: %s", path)
        except OSError as e:
            logger.error("Failed to create file handler: %s", e)

    return logger
