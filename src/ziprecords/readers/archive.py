#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/readers/archive.py
"""Record reader that turns one ZIP archive into a stream of records.

This module provides the ArchiveRecordReader class. It owns the archive's
byte source and the decompression cursor for the lifetime of one work unit
and applies the lenient/strict failure policy to entry-level errors.

State machine::

    UNINITIALIZED -> READY -> READING (self-loop per record)
                                 |-> EXHAUSTED  (end marker, or lenient failure)
                                 |-> FAILED     (strict failure, error raised)
    any state -> CLOSED

"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, Optional, Union

from ziprecords.decoder import EntryCursor
from ziprecords.exceptions import (
    EntryError,
    NoCurrentRecordError,
    ReaderClosedError,
    ReaderStateError,
)
from ziprecords.options.archive import ArchiveReaderOptions
from ziprecords.progress import ProgressCallback
from ziprecords.readers.base import RecordReader
from ziprecords.records import Record
from ziprecords.source import ArchiveSource, FileSystem, SourceInput, open_source

logger = logging.getLogger(__name__)


class ReaderState(Enum):
    """Lifecycle states of an ArchiveRecordReader."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    READING = "reading"
    EXHAUSTED = "exhausted"
    FAILED = "failed"
    CLOSED = "closed"


class ArchiveRecordReader(RecordReader):
    """Sequential, single-pass reader over the entries of one ZIP archive.

    Each successful ``advance()`` decodes one entry fully into memory and
    exposes it as a ``Record(name, payload)``. Entries come out in archive
    order. The failure policy is read from ``options.lenient`` once, at
    construction, so later changes to any shared configuration never affect
    a reader that is already running.

    Parameters
    ----------
    options : ArchiveReaderOptions or None
        Reader options. Defaults to strict mode.
    progress_callback : ProgressCallback or None
        Optional callback receiving per-entry progress events

    Examples
    --------
        >>> reader = ArchiveRecordReader(ArchiveReaderOptions(lenient=True))
        >>> reader.initialize("archive.zip")
        >>> while reader.advance():
        ...     record = reader.current_record()
        ...     print(record.name, record.size)
        >>> reader.close()

    """

    def __init__(
        self, options: ArchiveReaderOptions | None = None, progress_callback: Optional[ProgressCallback] = None
    ):
        """Initialize the reader with options and progress callback."""
        RecordReader._validate_options_type(options, ArchiveReaderOptions, "archive")
        options = options or ArchiveReaderOptions()
        super().__init__(options, progress_callback=progress_callback)
        self.options: ArchiveReaderOptions = options
        self._state = ReaderState.UNINITIALIZED
        self._terminated = False
        self._source: ArchiveSource | None = None
        self._cursor: EntryCursor | None = None
        self._current: Record | None = None
        self._records_read = 0

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def lenient(self) -> bool:
        return self.options.lenient

    @property
    def records_read(self) -> int:
        """Number of records produced so far."""
        return self._records_read

    @property
    def source(self) -> ArchiveSource | None:
        return self._source

    def initialize(self, source: Union[ArchiveSource, SourceInput], filesystem: FileSystem | None = None) -> None:
        """Bind the reader to an archive.

        Parameters
        ----------
        source : ArchiveSource, str, Path, IO[bytes], or bytes
            An already-open source, or input that ``open_source`` can resolve
        filesystem : FileSystem, optional
            Collaborator used to open path inputs

        Raises
        ------
        SourceUnavailableError
            If the collaborator cannot open the archive
        ReaderClosedError
            If the reader has been closed
        ReaderStateError
            If the reader is already bound to a source

        """
        if self._state is ReaderState.CLOSED:
            raise ReaderClosedError()
        if self._state is not ReaderState.UNINITIALIZED:
            raise ReaderStateError("Reader is already initialized")

        if not isinstance(source, ArchiveSource):
            source = open_source(source, filesystem=filesystem)

        self._source = source
        self._cursor = EntryCursor(source, self.options)
        self._state = ReaderState.READY
        logger.debug("Reader bound to %s (lenient=%s)", source.name, self.lenient)
        self._emit_progress("started", f"Reading archive {source.name}", lenient=self.lenient)

    def advance(self) -> bool:
        """Decode the next entry.

        Returns
        -------
        bool
            True if a new record is available, False at end of archive. In
            lenient mode an entry-level failure also yields False.

        Raises
        ------
        EntryError
            In strict mode, when the next entry cannot be decoded. The reader
            moves to FAILED and produces no further records.
        ReaderStateError
            If called before ``initialize()`` or after ``close()``.

        """
        if self._state is ReaderState.CLOSED:
            raise ReaderClosedError()
        if self._state is ReaderState.UNINITIALIZED:
            raise ReaderStateError("Reader is not initialized; call initialize() first")
        if self._state in (ReaderState.EXHAUSTED, ReaderState.FAILED):
            self._current = None
            return False

        assert self._cursor is not None
        try:
            record = self._next_visible_record(self._cursor)
        except EntryError as e:
            self._current = None
            self._terminated = True
            self._emit_progress(
                "error",
                f"Failed to decode entry: {e.message}",
                current=self._records_read,
                error=e.message,
                error_type=type(e).__name__,
                entry_name=e.entry_name,
                suppressed=self.lenient,
            )
            if not self.lenient:
                self._state = ReaderState.FAILED
                logger.error("Entry decode failed in %s: %s", self._source_name, e.message)
                raise
            self._state = ReaderState.EXHAUSTED
            logger.info(
                "Lenient mode: treating %s as exhausted after %d record(s): %s",
                self._source_name,
                self._records_read,
                e.message,
            )
            return False
        except Exception:
            self._current = None
            self._terminated = True
            self._state = ReaderState.FAILED
            raise

        if record is None:
            self._current = None
            self._terminated = True
            self._state = ReaderState.EXHAUSTED
            logger.debug("Archive %s exhausted after %d record(s)", self._source_name, self._records_read)
            self._emit_progress("finished", f"Finished reading {self._source_name}", current=self._records_read)
            return False

        self._current = record
        self._records_read += 1
        self._state = ReaderState.READING
        self._emit_progress(
            "item_done",
            f"Entry {record.name}",
            current=self._records_read,
            item_type="entry",
            entry_name=record.name,
            size=record.size,
        )
        return True

    def current_record(self) -> Record:
        """Return the record produced by the last successful ``advance()``.

        Raises
        ------
        NoCurrentRecordError
            Before the first successful ``advance()``, after exhaustion or
            failure, and after ``close()``.

        """
        if self._current is None or self._state is not ReaderState.READING:
            raise NoCurrentRecordError()
        return self._current

    def progress(self) -> float:
        """Return 0.0 while reading and 1.0 once the archive is exhausted or failed."""
        return 1.0 if self._terminated else 0.0

    def close(self) -> None:
        """Release the decode cursor and the archive source.

        Safe to call any number of times and from any state. A failure while
        closing the source is logged and never raised.
        """
        if self._state is ReaderState.CLOSED:
            return

        self._state = ReaderState.CLOSED
        self._current = None
        self._cursor = None
        source, self._source = self._source, None
        if source is None:
            return

        try:
            source.close()
        except Exception as e:
            logger.warning(f"Error closing archive source {source.name}: {e}", exc_info=True)

    def _next_visible_record(self, cursor: EntryCursor) -> Record | None:
        while True:
            record = cursor.next_record()
            if record is None or not (self.options.skip_directories and record.is_directory):
                return record
            logger.debug("Skipping directory entry %s", record.name)

    @property
    def _source_name(self) -> str:
        return self._source.name if self._source is not None else "<unbound>"

    def __repr__(self) -> str:
        return f"ArchiveRecordReader(state={self._state.value}, lenient={self.lenient}, source={self._source_name!r})"


def iter_records(
    input_data: Union[ArchiveSource, SourceInput],
    options: ArchiveReaderOptions | None = None,
    filesystem: FileSystem | None = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> Iterator[Record]:
    """Yield the records of one archive, closing it when iteration stops.

    Parameters
    ----------
    input_data : ArchiveSource, str, Path, IO[bytes], or bytes
        The archive to read
    options : ArchiveReaderOptions, optional
        Reader options (strict by default)
    filesystem : FileSystem, optional
        Collaborator used to open path inputs
    progress_callback : ProgressCallback, optional
        Callback receiving progress events

    Yields
    ------
    Record
        One record per entry, in archive order

    """
    with ArchiveRecordReader(options, progress_callback=progress_callback) as reader:
        reader.initialize(input_data, filesystem=filesystem)
        yield from reader
