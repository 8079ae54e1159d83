"""Logging utilities for doctags stages.

Stages pass the comment or record position as ``extra={"position": ...}``;
handlers installed by :func:`configure_logging` print it in front of the
message so warnings point at ``filename:linenr``.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "doctags"
_CONSOLE_FORMAT = "[doctags] %(levelname)s %(location)s%(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(location)s%(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the doctags hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class PositionFilter(logging.Filter):
    """Sets ``record.location`` to ``"file:line: "`` or an empty string.

    The position comes from ``extra={"position": ...}`` or, for
    ``logger.exception`` calls, from the ``position`` of the raised
    ``DocTagsError``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        position = getattr(record, "position", None)
        if position is None and record.exc_info:
            position = getattr(record.exc_info[1], "position", None)
        record.location = f"{position}: " if position is not None else ""
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the doctags logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated configuration does not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    position_filter = PositionFilter()
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(position_filter)
    stream_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(position_filter)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["PositionFilter", "configure_logging", "get_logger"]
