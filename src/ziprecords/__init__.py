"""ziprecords - read the entries of ZIP archives as a stream of records.

ziprecords lets a batch data-processing job treat every entry inside a ZIP
archive as one logical record, a ``(name, payload)`` pair. The archive as a
whole is the unit of work handed to one worker; entries are decoded one at
a time, strictly in archive order, straight from a forward-only byte
stream without consulting the central directory.

Key Features
------------
- Pull-based reader (``advance`` / ``current_record`` / ``progress`` / ``close``)
  that also works as a Python iterator and context manager
- Lenient and strict failure policies for corrupt, truncated and encrypted entries
- Input format that declares archives non-splittable and creates one reader per unit
- Local job runner for map/reduce style batch runs
- Stored, deflate and bzip2 entries, data descriptors and ZIP64 sizes

Requirements
------------
- Python 3.10+

Examples
--------
Iterate over an archive:

    >>> from ziprecords import iter_records
    >>> for record in iter_records("archive.zip"):
    ...     print(record.name, record.size)

Drive a reader the way a batch engine does:

    >>> from ziprecords import ArchiveInputFormat
    >>> fmt = ArchiveInputFormat()
    >>> fmt.set_lenient(True)
    >>> reader = fmt.create_reader("archive.zip")
    >>> try:
    ...     while reader.advance():
    ...         name, payload = reader.current_record().name, reader.current_record().payload
    ... finally:
    ...     reader.close()

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "ziprecords requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "0.1.0"

from ziprecords.decoder import EntryCursor
from ziprecords.exceptions import (
    ChecksumMismatchError,
    EncryptedEntryError,
    EntryError,
    EntryTooLargeError,
    InvalidOptionsError,
    JobFailedError,
    MalformedEntryError,
    NoCurrentRecordError,
    ReaderClosedError,
    ReaderStateError,
    SourceUnavailableError,
    TruncatedStreamError,
    UnsupportedCompressionError,
    ValidationError,
    ZipRecordsError,
)
from ziprecords.input_format import ArchiveInputFormat, WorkUnit
from ziprecords.job import JobResult, LocalJobRunner, UnitResult, sum_reducer, word_count_mapper
from ziprecords.options import ArchiveReaderOptions
from ziprecords.progress import ProgressCallback, ProgressEvent
from ziprecords.readers import ArchiveRecordReader, ReaderState, RecordReader, iter_records
from ziprecords.records import LocalEntryHeader, Record
from ziprecords.source import ArchiveSource, FileSystem, LocalFileSystem, open_source

__all__ = [
    "__version__",
    # Readers
    "ArchiveRecordReader",
    "RecordReader",
    "ReaderState",
    "iter_records",
    "EntryCursor",
    # Integration
    "ArchiveInputFormat",
    "WorkUnit",
    "LocalJobRunner",
    "JobResult",
    "UnitResult",
    "word_count_mapper",
    "sum_reducer",
    # Data
    "Record",
    "LocalEntryHeader",
    "ArchiveSource",
    "FileSystem",
    "LocalFileSystem",
    "open_source",
    # Configuration
    "ArchiveReaderOptions",
    "ProgressCallback",
    "ProgressEvent",
    # Exceptions
    "ZipRecordsError",
    "ValidationError",
    "InvalidOptionsError",
    "SourceUnavailableError",
    "EntryError",
    "MalformedEntryError",
    "EncryptedEntryError",
    "UnsupportedCompressionError",
    "TruncatedStreamError",
    "ChecksumMismatchError",
    "EntryTooLargeError",
    "ReaderStateError",
    "NoCurrentRecordError",
    "ReaderClosedError",
    "JobFailedError",
]
