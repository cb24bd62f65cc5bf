#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Subcommand implementations for the ziprecords CLI."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from ziprecords.cli.builder import EXIT_ERROR, EXIT_JOB_FAILED, EXIT_SUCCESS, get_exit_code_for_exception
from ziprecords.exceptions import ZipRecordsError
from ziprecords.input_format import ArchiveInputFormat
from ziprecords.job import LocalJobRunner, sum_reducer, word_count_mapper
from ziprecords.options import ArchiveReaderOptions


def build_options(args: argparse.Namespace) -> ArchiveReaderOptions:
    """Translate parsed arguments into reader options."""
    return ArchiveReaderOptions(
        lenient=args.lenient,
        chunk_size=args.chunk_size,
        max_entry_size=args.max_entry_size,
        skip_directories=args.skip_directories,
    )


def _render_listing_rich(rows: list[tuple[str, str, int]]) -> None:
    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title="Archive Records")
    table.add_column("Archive", style="cyan", no_wrap=False)
    table.add_column("Entry", style="yellow")
    table.add_column("Size", style="magenta", justify="right")

    for archive, entry, size in rows:
        table.add_row(archive, entry, str(size))

    console.print(table)


def _render_listing_plain(rows: list[tuple[str, str, int]]) -> None:
    for archive, entry, size in rows:
        print(f"{archive}\t{entry}\t{size}")


def _render_counts_rich(counts: dict[str, Any]) -> None:
    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title="Word Count")
    table.add_column("Word", style="cyan")
    table.add_column("Count", style="magenta", justify="right")

    for word, count in counts.items():
        table.add_row(word, str(count))

    console.print(table)


def _report_error(prefix: str, error: Exception) -> None:
    print(f"Error: {prefix}: {error}", file=sys.stderr)


def run_list(args: argparse.Namespace) -> int:
    """List every record of the given archives in archive order."""
    input_format = ArchiveInputFormat(build_options(args))
    try:
        units = input_format.list_work_units(args.inputs, recursive=args.recursive)
    except ZipRecordsError as e:
        _report_error("cannot collect inputs", e)
        return get_exit_code_for_exception(e)

    rows: list[tuple[str, str, int]] = []
    exit_code = EXIT_SUCCESS
    for unit in units:
        try:
            with input_format.create_reader(unit) as reader:
                for record in reader:
                    rows.append((unit.path, record.name, record.size))
        except ZipRecordsError as e:
            _report_error(unit.path, e)
            exit_code = get_exit_code_for_exception(e)

    if args.rich:
        _render_listing_rich(rows)
    else:
        _render_listing_plain(rows)
    return exit_code


def run_cat(args: argparse.Namespace) -> int:
    """Write the payload of the named entry to stdout."""
    input_format = ArchiveInputFormat(build_options(args))
    try:
        with input_format.create_reader(args.archive) as reader:
            for record in reader:
                if record.name == args.entry:
                    sys.stdout.buffer.write(record.payload)
                    sys.stdout.flush()
                    return EXIT_SUCCESS
    except ZipRecordsError as e:
        _report_error(args.archive, e)
        return get_exit_code_for_exception(e)

    print(f"Error: entry not found: {args.entry}", file=sys.stderr)
    return EXIT_ERROR


def run_wordcount(args: argparse.Namespace) -> int:
    """Run the word-count calibration job over the given inputs."""
    input_format = ArchiveInputFormat(build_options(args))
    runner = LocalJobRunner(input_format, word_count_mapper, sum_reducer, max_workers=args.workers)
    try:
        result = runner.run(args.inputs, recursive=args.recursive)
    except ZipRecordsError as e:
        _report_error("cannot run job", e)
        return get_exit_code_for_exception(e)

    for failed in result.failed_units:
        _report_error(failed.unit.path, failed.error)  # type: ignore[arg-type]

    if args.rich:
        _render_counts_rich(result.output)
    else:
        for word, count in result.output.items():
            print(f"{word}\t{count}")

    return EXIT_SUCCESS if result.success else EXIT_JOB_FAILED
