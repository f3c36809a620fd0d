"""Logging configuration for onixport.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, to the ``onixport`` package logger, by the CLI or by an
embedding application.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "onixport"

FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-5s | [%(name)s] %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PLAIN_CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Console handler and its configured level, kept for set_console_quiet()
_console_handler: logging.Handler | None = None
_console_level: int = logging.INFO


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def _console_handler_for(rich_console: bool) -> logging.Handler:
    if rich_console:
        # markup off: ISBNs and XML paths like Product[0] are logged verbatim
        return RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(PLAIN_CONSOLE_FORMAT))
    return handler


def _file_handler_for(log_file: Path | str) -> logging.FileHandler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Path | str | None = None,
    rich_console: bool = True,
    quiet_console: bool = False,
) -> logging.Logger:
    """
    Configure the ``onixport`` package logger.

    Existing handlers are replaced, so calling this twice is safe.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR); unknown names
            fall back to INFO
        log_file: Optional file that receives every record at DEBUG
        rich_console: Use a RichHandler instead of a plain stderr handler
        quiet_console: Show only WARNING and above on the console

    Returns:
        The package logger
    """
    global _console_handler, _console_level
    level = _resolve_level(log_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    console_handler = _console_handler_for(rich_console)
    console_handler.setLevel(logging.WARNING if quiet_console else level)
    logger.addHandler(console_handler)
    _console_handler = console_handler
    _console_level = level

    if log_file:
        logger.addHandler(_file_handler_for(log_file))

    return logger


def set_console_quiet(quiet: bool = True) -> None:
    """Raise the console threshold to WARNING, or restore the configured level.

    The log file, if any, keeps receiving DEBUG records either way.
    """
    if _console_handler is not None:
        _console_handler.setLevel(logging.WARNING if quiet else _console_level)
