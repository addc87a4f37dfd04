"""Logging utilities for gotab.

bash runs gotab once per <Tab> press and shows its stderr inline with the
prompt, so the console only carries warnings unless verbose output was asked
for. The optional log file always gets debug detail, tagged with the process
id and the command line being completed so separate key presses can be told
apart.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "gotab"
_CONSOLE_FORMAT = "[gotab] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s [%(process)d] %(levelname)s %(name)s %(comp_line)r: %(message)s"


class _CompletionLineFilter(logging.Filter):
    """Stamp every record with the command line being completed."""

    def __init__(self, comp_line: str | None) -> None:
        super().__init__()
        self.comp_line = comp_line or ""

    def filter(self, record: logging.LogRecord) -> bool:
        record.comp_line = self.comp_line
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the gotab hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    comp_line: str | None = None,
) -> logging.Logger:
    """Send warnings (or everything, when verbose) to stderr and debug detail to `log_file`."""
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(console_level))
    if log_file is None:
        logger.setLevel(console_level)
    else:
        logger.addHandler(_file_handler(log_file, comp_line))
        logger.setLevel(logging.DEBUG)
    return logger


def _console_handler(level: int) -> logging.Handler:
    # Stdout carries the completion candidates.
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: Path, comp_line: str | None) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.addFilter(_CompletionLineFilter(comp_line))
    handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return handler


__all__ = ["configure_logging", "get_logger"]
