"""Package logger setup shared by the CLI and the backend."""

from __future__ import annotations

import logging
from pathlib import Path

PACKAGE_LOGGER = "ui_vispro"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_console_formatter: logging.Formatter | None = None


def use_console_formatter(formatter: logging.Formatter | None) -> None:
    """Mirror warnings to stderr with ``formatter`` on the next ``configure_logging``.

    Passing ``None`` turns the stderr mirror off again.
    """
    global _console_formatter
    _console_formatter = formatter


def configure_logging(*, log_file: Path, verbose: bool) -> logging.Logger:
    """Point the ``ui_vispro`` logger at a fresh log file and return it.

    The file is opened in write mode, so a run never sees records from the
    previous one. Loggers of submodules (``ui_vispro.ai.cache`` and friends)
    propagate into it.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(PACKAGE_LOGGER)
    while logger.handlers:
        stale = logger.handlers[0]
        logger.removeHandler(stale)
        stale.close()
    logger.setLevel(level)
    logger.propagate = False

    path = log_file.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    file_handler.setLevel(level)
    logger.addHandler(file_handler)

    if _console_formatter is not None:
        console = logging.StreamHandler()
        console.setFormatter(_console_formatter)
        console.setLevel(logging.WARNING)
        logger.addHandler(console)
    return logger


def get_logger() -> logging.Logger:
    """The package logger; silent until ``configure_logging`` runs."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
