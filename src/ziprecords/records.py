#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/records.py
"""Record and header types produced by the archive decoder."""

from __future__ import annotations

from dataclasses import dataclass

from ziprecords.constants import FLAG_DATA_DESCRIPTOR, FLAG_ENCRYPTED, FLAG_STRONG_ENCRYPTION


@dataclass(frozen=True)
class Record:
    """One fully decoded archive entry.

    Parameters
    ----------
    name : str
        Full entry path as stored in the archive, e.g. ``"subdir/a/b.txt"``
    payload : bytes
        Complete decompressed content of the entry

    """

    name: str
    payload: bytes

    @property
    def size(self) -> int:
        """Length of the decoded payload in bytes."""
        return len(self.payload)

    @property
    def is_directory(self) -> bool:
        """Whether the entry names a directory."""
        return self.name.endswith("/")


@dataclass(frozen=True)
class LocalEntryHeader:
    """Fields of a ZIP local file header, after ZIP64 size resolution.

    ``compressed_size`` and ``uncompressed_size`` are None when the header
    defers them to a trailing data descriptor.
    """

    name: str
    offset: int
    version: int
    flags: int
    method: int
    crc32: int
    compressed_size: int | None
    uncompressed_size: int | None
    zip64: bool = False

    @property
    def is_encrypted(self) -> bool:
        return bool(self.flags & (FLAG_ENCRYPTED | FLAG_STRONG_ENCRYPTION))

    @property
    def has_data_descriptor(self) -> bool:
        return bool(self.flags & FLAG_DATA_DESCRIPTOR)
