"""Logging utilities for tuzuru commands."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "tuzuru"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the tuzuru hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the tuzuru logger with console output and an optional file sink.

    Args:
        verbose: Emit debug records when True, info and above otherwise.
        log_file: Optional file that receives a timestamped copy of every record.

    Returns:
        The configured package logger.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # CliRunner invokes commands repeatedly in one process.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[tuzuru] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
