"""Logging setup for ziprecords entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers. Handlers
are installed here, on the ``ziprecords`` package logger, by the CLI or by an
embedding script that wants the reader's diagnostics on stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "ziprecords"

_PLAIN_FORMAT = "%(levelname)s: %(message)s"
_TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(threadName)s] [%(name)s] %(message)s"
_TRACE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(log_level: int | str) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _mark(handler: logging.Handler) -> logging.Handler:
    handler._ziprecords_handler = True  # type: ignore[attr-defined]
    return handler


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Send ziprecords log records to stderr and optionally a file.

    Calling this again replaces the handlers a previous call installed;
    handlers added by anyone else are left alone.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name (e.g. "INFO").
    log_file : str, optional
        Path of a file that receives a copy of the log output.
    trace_mode : bool, default False
        Add timestamps, worker thread names and logger names to each line.

    Returns
    -------
    logging.Logger
        The ``ziprecords`` package logger.

    """
    level = _resolve_level(log_level)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_ziprecords_handler", False):
            package_logger.removeHandler(handler)
            handler.close()

    if trace_mode:
        formatter = logging.Formatter(_TRACE_FORMAT, datefmt=_TRACE_DATE_FORMAT)
    else:
        formatter = logging.Formatter(_PLAIN_FORMAT)

    console_handler = _mark(logging.StreamHandler(sys.stderr))
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = _mark(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as exc:
            package_logger.warning("Could not open log file %s: %s", log_file, exc)
        else:
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
            package_logger.debug("Logging to file: %s", log_file)

    return package_logger
