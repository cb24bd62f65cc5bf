#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Argument parser construction and exit-code mapping for the ziprecords CLI."""

from __future__ import annotations

import argparse
import logging
import os

from ziprecords.constants import DEFAULT_CHUNK_SIZE, ENV_PREFIX
from ziprecords.exceptions import EntryError, JobFailedError, SourceUnavailableError, ValidationError
from ziprecords.options.archive import ArchiveReaderOptions

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_ENTRY_ERROR = 6
EXIT_JOB_FAILED = 7

_TRUE_VALUES = ("true", "1", "yes", "on")


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, (ValidationError, ValueError)):
        return EXIT_VALIDATION_ERROR

    if isinstance(exception, (SourceUnavailableError, OSError)):
        return EXIT_FILE_ERROR

    if isinstance(exception, EntryError):
        return EXIT_ENTRY_ERROR

    if isinstance(exception, JobFailedError):
        return EXIT_JOB_FAILED

    return EXIT_ERROR


def get_env_var_value(key: str) -> str | None:
    """Get environment variable with the ZIPRECORDS_ prefix."""
    return os.environ.get(f"{ENV_PREFIX}{key.upper().replace('-', '_')}")


def apply_env_vars_to_parser(parser: argparse.ArgumentParser) -> None:
    """Apply environment variables as defaults to parser arguments.

    CLI arguments still take precedence over environment variables.
    """
    for action in parser._actions:
        if not action.dest or action.dest in ("help", "version"):
            continue

        env_value = get_env_var_value(action.dest)
        if env_value is None:
            continue

        if isinstance(action, argparse._StoreTrueAction):
            action.default = env_value.lower() in _TRUE_VALUES
        elif action.type is int:
            try:
                action.default = int(env_value)
            except ValueError:
                logging.warning(f"Invalid integer value for {ENV_PREFIX}{action.dest.upper()}: {env_value}")
        elif action.choices:
            if env_value in action.choices:
                action.default = env_value
            else:
                logging.warning(
                    f"Invalid choice for {ENV_PREFIX}{action.dest.upper()}: {env_value}. "
                    f"Choices: {list(action.choices)}"
                )
        else:
            action.default = env_value


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    reading = parser.add_argument_group("reading")
    reading.add_argument("--lenient", action="store_true", help=ArchiveReaderOptions.field_help("lenient"))
    reading.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=f"{ArchiveReaderOptions.field_help('chunk_size')} (default: {DEFAULT_CHUNK_SIZE})",
    )
    reading.add_argument(
        "--max-entry-size",
        type=int,
        default=None,
        help=ArchiveReaderOptions.field_help("max_entry_size"),
    )
    reading.add_argument(
        "--skip-directories", action="store_true", help=ArchiveReaderOptions.field_help("skip_directories")
    )

    logs = parser.add_argument_group("logging")
    logs.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    logs.add_argument("--log-file", default=None, help="Also write log output to this file")
    logs.add_argument("--trace", action="store_true", help="Verbose log format with timestamps and thread names")


def create_parser(version: str = "unknown") -> argparse.ArgumentParser:
    """Create the top-level argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="ziprecords",
        description="Read the entries of ZIP archives as (name, bytes) records.",
    )
    parser.add_argument("--version", action="version", version=f"ziprecords {version}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="List the records of one or more archives")
    list_parser.add_argument("inputs", nargs="+", help="Archive files or directories")
    list_parser.add_argument("--recursive", "-r", action="store_true", help="Descend into subdirectories")
    list_parser.add_argument("--rich", action="store_true", help="Render output as a rich table")
    _add_common_arguments(list_parser)

    cat_parser = subparsers.add_parser("cat", help="Write the payload of one entry to stdout")
    cat_parser.add_argument("archive", help="Archive file")
    cat_parser.add_argument("entry", help="Full entry name inside the archive")
    _add_common_arguments(cat_parser)

    wc_parser = subparsers.add_parser("wordcount", help="Count words in the .txt entries of archives")
    wc_parser.add_argument("inputs", nargs="+", help="Archive files or directories")
    wc_parser.add_argument("--recursive", "-r", action="store_true", help="Descend into subdirectories")
    wc_parser.add_argument("--workers", type=int, default=None, help="Number of worker threads")
    wc_parser.add_argument("--rich", action="store_true", help="Render output as a rich table")
    _add_common_arguments(wc_parser)

    for sub in (list_parser, cat_parser, wc_parser):
        apply_env_vars_to_parser(sub)

    return parser
