#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Record readers for ziprecords."""

from ziprecords.readers.archive import ArchiveRecordReader, ReaderState, iter_records
from ziprecords.readers.base import RecordReader

__all__ = ["ArchiveRecordReader", "ReaderState", "RecordReader", "iter_records"]
