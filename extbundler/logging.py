"""Logging setup for build runs.

Every pipeline stage logs through a child of the ``extbundler`` logger
(``extbundler.graph``, ``extbundler.assembler`` ...). Console lines carry the
stage name so a long build log can be followed stage by stage.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "extbundler"


class _StageFormatter(logging.Formatter):
    """Prefixes console records with the pipeline stage that emitted them."""

    def format(self, record: logging.LogRecord) -> str:
        stage = record.name[len(_LOGGER_NAME) + 1 :] if record.name != _LOGGER_NAME else ""
        record.stage = f"{_LOGGER_NAME}:{stage}" if stage else _LOGGER_NAME
        return super().format(record)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger for one pipeline stage."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the ``extbundler`` logger.

    ``verbose`` enables per-file debug output; ``quiet`` limits the console to
    warnings and errors. The log file, when given, always records debug output.
    """
    if verbose:
        console_level = logging.DEBUG
    elif quiet:
        console_level = logging.WARNING
    else:
        console_level = logging.INFO

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(_StageFormatter("[%(stage)s] %(levelname)s %(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
