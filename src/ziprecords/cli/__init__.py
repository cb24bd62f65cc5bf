#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Command-line interface for the ziprecords library.

Environment Variable Support
----------------------------
Options accept defaults from environment variables named
ZIPRECORDS_<OPTION_NAME>, upper-cased with hyphens replaced by
underscores. CLI arguments always override environment variables.

Examples
--------
List the records of an archive::

    $ ziprecords list data.zip

List every archive in a directory, tolerating corrupt ones::

    $ ziprecords list ./inputs --lenient --rich

Extract one entry::

    $ ziprecords cat data.zip subdir/notes.txt > notes.txt

Run the word-count job over a batch::

    $ ziprecords wordcount ./inputs --workers 4

Use environment variables for defaults::

    $ export ZIPRECORDS_LENIENT=true
    $ ziprecords wordcount ./inputs

"""

from __future__ import annotations

import logging
import sys

from ziprecords.cli.builder import EXIT_VALIDATION_ERROR, create_parser
from ziprecords.cli.commands import run_cat, run_list, run_wordcount
from ziprecords.logging_utils import configure_logging

logger = logging.getLogger(__name__)

_COMMANDS = {
    "list": run_list,
    "cat": run_cat,
    "wordcount": run_wordcount,
}


def _get_version() -> str:
    """Get the version of the ziprecords package."""
    from ziprecords import __version__

    return __version__


def main(args: list[str] | None = None) -> int:
    """Execute the CLI and return its exit code."""
    parser = create_parser(version=_get_version())
    parsed_args = parser.parse_args(args)

    configure_logging(parsed_args.log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)
    logger.debug("Running command %s", parsed_args.command)

    try:
        return _COMMANDS[parsed_args.command](parsed_args)
    except ValueError as e:
        # Option values rejected by ArchiveReaderOptions or LocalJobRunner
        print(f"Error: invalid argument: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR


__all__ = ["main"]
