#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/ziprecords/options/archive.py
"""Configuration options for reading ZIP archives as record streams.

This module defines the options consumed by ``ArchiveRecordReader`` and
carried by ``ArchiveInputFormat`` to every reader it creates.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field

from ziprecords.constants import DEFAULT_CHUNK_SIZE, DEFAULT_LENIENT, DEFAULT_NAME_ENCODING
from ziprecords.options.base import BaseReaderOptions


@dataclass(frozen=True)
class ArchiveReaderOptions(BaseReaderOptions):
    """Configuration options for sequential archive record reading.

    Parameters
    ----------
    lenient : bool, default False
        Failure policy for entry-level decode errors. When False (strict),
        a malformed, truncated, encrypted or corrupt entry fails the work
        unit. When True, the first such failure is treated as a clean end
        of archive and no error is surfaced.
    chunk_size : int, default 8192
        Number of compressed bytes read from the source per decode step.
    max_entry_size : int or None, default None
        Maximum decoded payload size for a single entry. None means unlimited.
        Exceeding the limit is an entry-level error.
    skip_directories : bool, default False
        Whether directory entries (names ending in ``/``) are consumed silently
        instead of being emitted as records with an empty payload.
    name_encoding : str, default "cp437"
        Encoding for entry names whose UTF-8 flag is not set.

    """

    lenient: bool = field(
        default=DEFAULT_LENIENT,
        metadata={
            "help": "Treat entry decode failures as end of archive instead of failing the unit",
            "importance": "core",
        },
    )

    chunk_size: int = field(
        default=DEFAULT_CHUNK_SIZE,
        metadata={"help": "Bytes read from the source per decode step", "type": int, "importance": "advanced"},
    )

    max_entry_size: int | None = field(
        default=None,
        metadata={
            "help": "Maximum decoded size in bytes for a single entry (None=unlimited)",
            "type": int,
            "importance": "security",
        },
    )

    skip_directories: bool = field(
        default=False,
        metadata={"help": "Do not emit records for directory entries", "importance": "advanced"},
    )

    name_encoding: str = field(
        default=DEFAULT_NAME_ENCODING,
        metadata={"help": "Encoding for entry names without the UTF-8 flag", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option ranges.

        Raises
        ------
        ValueError
            If chunk_size or max_entry_size is not positive, or the name
            encoding is unknown.

        """
        super().__post_init__()

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

        if self.max_entry_size is not None and self.max_entry_size <= 0:
            raise ValueError(f"max_entry_size must be positive, got {self.max_entry_size}")

        try:
            codecs.lookup(self.name_encoding)
        except LookupError as e:
            raise ValueError(f"Unknown name_encoding: {self.name_encoding}") from e
