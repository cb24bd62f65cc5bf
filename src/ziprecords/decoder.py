#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/decoder.py
"""Forward-only decoder for ZIP local file entries.

``EntryCursor`` walks the sequence of local entries at the front of a ZIP
stream without consulting the central directory. Each call to
``next_record()`` parses one local header, decodes the body in bounded
chunks into a growable buffer, reads the data descriptor when the header
defers sizes to it, verifies size and CRC-32, and returns the entry as a
``Record``.

The walk ends cleanly at the first position that does not start with a
local header signature: the central directory of a well-formed archive,
the end of an empty archive, or the first bytes of data that is not a ZIP
archive at all. Failures inside an entry raise an ``EntryError`` subclass;
whether that fails the work unit is the reader's decision, not the cursor's.
"""

from __future__ import annotations

import bz2
import logging
import struct
import zlib
from typing import Any, Optional

from ziprecords.constants import (
    DATA_DESCRIPTOR_SIGNATURE,
    EXTRA_HEADER_STRUCT,
    FLAG_DATA_DESCRIPTOR,
    FLAG_UTF8,
    LOCAL_HEADER_SIGNATURE,
    LOCAL_HEADER_STRUCT,
    METHOD_BZIP2,
    METHOD_DEFLATED,
    SUPPORTED_METHODS,
    ZIP64_EXTRA_ID,
    ZIP64_SIZE_MARKER,
)
from ziprecords.exceptions import (
    ChecksumMismatchError,
    EncryptedEntryError,
    EntryTooLargeError,
    MalformedEntryError,
    TruncatedStreamError,
    UnsupportedCompressionError,
)
from ziprecords.options.archive import ArchiveReaderOptions
from ziprecords.records import LocalEntryHeader, Record
from ziprecords.source import ArchiveSource

logger = logging.getLogger(__name__)

_UINT32 = struct.Struct("<I")
_UINT64 = struct.Struct("<Q")


def parse_extra_field(extra: bytes) -> dict[int, bytes]:
    """Split a ZIP extra field into ``{header_id: data}``.

    A trailing fragment too short to hold a header is ignored, as is data
    running past the end of the field.
    """
    fields: dict[int, bytes] = {}
    pos = 0
    while pos + EXTRA_HEADER_STRUCT.size <= len(extra):
        header_id, data_size = EXTRA_HEADER_STRUCT.unpack_from(extra, pos)
        pos += EXTRA_HEADER_STRUCT.size
        fields[header_id] = extra[pos : pos + data_size]
        pos += data_size
    return fields


def _create_decompressor(method: int) -> Optional[Any]:
    if method == METHOD_DEFLATED:
        return zlib.decompressobj(-15)
    if method == METHOD_BZIP2:
        return bz2.BZ2Decompressor()
    return None


class EntryCursor:
    """Sequential cursor over the local entries of one archive stream.

    Parameters
    ----------
    source : ArchiveSource
        Stream positioned at the first local header
    options : ArchiveReaderOptions, optional
        Chunk size, size ceiling and name encoding

    """

    def __init__(self, source: ArchiveSource, options: ArchiveReaderOptions | None = None) -> None:
        """Bind the cursor to a source positioned at the start of the archive."""
        self._source = source
        self._options = options or ArchiveReaderOptions()
        self._finished = False
        self.entries_read = 0

    @property
    def finished(self) -> bool:
        """Whether the end of the local entry sequence was reached."""
        return self._finished

    def next_record(self) -> Record | None:
        """Decode the next entry.

        Returns
        -------
        Record or None
            The decoded entry, or None once no further local header exists.

        Raises
        ------
        EntryError
            If the entry is malformed, encrypted, truncated or corrupt.

        """
        if self._finished:
            return None

        header = self.read_header()
        if header is None:
            self._finished = True
            return None

        payload = self.read_payload(header)
        self.entries_read += 1
        logger.debug("Decoded entry %s (%d bytes) at offset %d", header.name, len(payload), header.offset)
        return Record(name=header.name, payload=payload)

    def read_header(self) -> LocalEntryHeader | None:
        """Parse the local header at the current position.

        Returns None when the position does not hold a local header.
        """
        offset = self._source.position
        signature = self._read(len(LOCAL_HEADER_SIGNATURE), offset=offset)
        if signature != LOCAL_HEADER_SIGNATURE:
            if signature:
                logger.debug("No local header at offset %d (found %r), end of entries", offset, signature)
            return None

        raw = self._read_exact(LOCAL_HEADER_STRUCT.size, "local header", offset=offset)
        (
            version,
            flags,
            method,
            _mod_time,
            _mod_date,
            crc32,
            compressed_size,
            uncompressed_size,
            name_length,
            extra_length,
        ) = LOCAL_HEADER_STRUCT.unpack(raw)

        raw_name = self._read_exact(name_length, "entry name", offset=offset)
        name = raw_name.decode("utf-8" if flags & FLAG_UTF8 else self._options.name_encoding, errors="replace")
        extra = parse_extra_field(self._read_exact(extra_length, "extra field", entry_name=name, offset=offset))

        zip64 = ZIP64_EXTRA_ID in extra
        if compressed_size == ZIP64_SIZE_MARKER or uncompressed_size == ZIP64_SIZE_MARKER:
            uncompressed_size, compressed_size = self._resolve_zip64_sizes(
                extra.get(ZIP64_EXTRA_ID), uncompressed_size, compressed_size, name, offset
            )

        if flags & FLAG_DATA_DESCRIPTOR:
            # Zero sizes are placeholders; the descriptor is authoritative
            compressed_size = compressed_size or None
            uncompressed_size = uncompressed_size or None

        return LocalEntryHeader(
            name=name,
            offset=offset,
            version=version,
            flags=flags,
            method=method,
            crc32=crc32,
            compressed_size=compressed_size,
            uncompressed_size=uncompressed_size,
            zip64=zip64,
        )

    def read_payload(self, header: LocalEntryHeader) -> bytes:
        """Decode the body of ``header`` and verify it.

        Raises
        ------
        EntryError
            On any decode or verification failure.

        """
        if header.is_encrypted:
            raise EncryptedEntryError(entry_name=header.name, offset=header.offset)
        if header.method not in SUPPORTED_METHODS:
            raise UnsupportedCompressionError(header.method, entry_name=header.name, offset=header.offset)

        decompressor = _create_decompressor(header.method)
        buffer = bytearray()

        if header.has_data_descriptor and decompressor is not None:
            consumed = self._decode_until_stream_end(header, decompressor, buffer)
        else:
            if header.compressed_size is None:
                raise MalformedEntryError(
                    f"Stored entry '{header.name}' defers its size to a data descriptor",
                    entry_name=header.name,
                    offset=header.offset,
                )
            consumed = self._decode_known_size(header, decompressor, buffer)

        expected_crc = header.crc32
        expected_size = header.uncompressed_size
        if header.has_data_descriptor:
            expected_crc, descriptor_csize, expected_size = self._read_data_descriptor(header)
            if descriptor_csize != consumed:
                raise MalformedEntryError(
                    f"Compressed size mismatch for entry '{header.name}': "
                    f"descriptor says {descriptor_csize}, read {consumed}",
                    entry_name=header.name,
                    offset=header.offset,
                )

        if expected_size is not None and expected_size != len(buffer):
            raise MalformedEntryError(
                f"Size mismatch for entry '{header.name}': expected {expected_size} bytes, decoded {len(buffer)}",
                entry_name=header.name,
                offset=header.offset,
            )

        actual_crc = zlib.crc32(buffer) & 0xFFFFFFFF
        if actual_crc != expected_crc:
            raise ChecksumMismatchError(expected_crc, actual_crc, entry_name=header.name, offset=header.offset)

        return bytes(buffer)

    def _decode_known_size(self, header: LocalEntryHeader, decompressor: Any, buffer: bytearray) -> int:
        assert header.compressed_size is not None
        remaining = header.compressed_size
        chunk_size = self._options.chunk_size

        while remaining > 0:
            data = self._read(min(chunk_size, remaining), entry_name=header.name, offset=header.offset)
            if not data:
                raise TruncatedStreamError(
                    f"Stream ended inside entry '{header.name}' with {remaining} compressed bytes missing",
                    entry_name=header.name,
                    offset=header.offset,
                )
            remaining -= len(data)
            if decompressor is None:
                buffer += data
                self._check_size_limit(header, buffer)
            elif not decompressor.eof:
                self._decompress_into(decompressor, data, header, buffer)

        # Directory entries may carry a compressed method with an empty body
        if decompressor is not None and not decompressor.eof and header.compressed_size > 0:
            raise MalformedEntryError(
                f"Compressed data for entry '{header.name}' ends before the end of its compressed stream",
                entry_name=header.name,
                offset=header.offset,
            )
        return header.compressed_size

    def _decode_until_stream_end(self, header: LocalEntryHeader, decompressor: Any, buffer: bytearray) -> int:
        consumed = 0
        chunk_size = self._options.chunk_size

        while not decompressor.eof:
            data = self._read(chunk_size, entry_name=header.name, offset=header.offset)
            if not data:
                raise TruncatedStreamError(
                    f"Stream ended inside the compressed body of entry '{header.name}'",
                    entry_name=header.name,
                    offset=header.offset,
                )
            consumed += len(data)
            self._decompress_into(decompressor, data, header, buffer)

        unused = decompressor.unused_data
        if unused:
            self._source.unread(unused)
            consumed -= len(unused)
        return consumed

    def _read_data_descriptor(self, header: LocalEntryHeader) -> tuple[int, int, int]:
        size_struct = _UINT64 if header.zip64 else _UINT32
        first = self._read_exact(4, "data descriptor", entry_name=header.name, offset=header.offset)
        if first == DATA_DESCRIPTOR_SIGNATURE:
            first = self._read_exact(4, "data descriptor", entry_name=header.name, offset=header.offset)
        rest = self._read_exact(2 * size_struct.size, "data descriptor", entry_name=header.name, offset=header.offset)

        (crc32,) = _UINT32.unpack(first)
        (compressed_size,) = size_struct.unpack_from(rest, 0)
        (uncompressed_size,) = size_struct.unpack_from(rest, size_struct.size)
        return crc32, compressed_size, uncompressed_size

    @staticmethod
    def _resolve_zip64_sizes(
        zip64_extra: bytes | None, uncompressed_size: int, compressed_size: int, name: str, offset: int
    ) -> tuple[int, int]:
        if zip64_extra is None:
            raise MalformedEntryError(
                f"Entry '{name}' uses ZIP64 size markers without a ZIP64 extra field",
                entry_name=name,
                offset=offset,
            )
        pos = 0
        try:
            if uncompressed_size == ZIP64_SIZE_MARKER:
                (uncompressed_size,) = _UINT64.unpack_from(zip64_extra, pos)
                pos += _UINT64.size
            if compressed_size == ZIP64_SIZE_MARKER:
                (compressed_size,) = _UINT64.unpack_from(zip64_extra, pos)
        except struct.error as e:
            raise MalformedEntryError(
                f"ZIP64 extra field of entry '{name}' is too short", entry_name=name, offset=offset, original_error=e
            ) from e
        return uncompressed_size, compressed_size

    def _check_size_limit(self, header: LocalEntryHeader, buffer: bytearray) -> None:
        limit = self._options.max_entry_size
        if limit is not None and len(buffer) > limit:
            raise EntryTooLargeError(limit, entry_name=header.name, offset=header.offset)

    def _decompress_into(self, decompressor: Any, data: bytes, header: LocalEntryHeader, buffer: bytearray) -> None:
        """Expand ``data`` into ``buffer`` at most ``chunk_size`` bytes per step.

        The buffer never grows more than one byte past ``max_entry_size``
        before the entry is rejected, however well the body compresses.
        """
        limit = self._options.max_entry_size
        is_bz2 = isinstance(decompressor, bz2.BZ2Decompressor)
        while True:
            max_length = self._options.chunk_size
            if limit is not None:
                max_length = min(max_length, limit - len(buffer) + 1)
            output = self._decompress(decompressor, data, max_length, header)
            buffer += output
            self._check_size_limit(header, buffer)
            if decompressor.eof:
                return
            if is_bz2:
                if decompressor.needs_input:
                    return
                data = b""
            else:
                data = decompressor.unconsumed_tail
                # A short result with no leftover input means zlib has nothing buffered
                if not data and len(output) < max_length:
                    return

    def _decompress(self, decompressor: Any, data: bytes, max_length: int, header: LocalEntryHeader) -> bytes:
        try:
            if isinstance(decompressor, bz2.BZ2Decompressor):
                return decompressor.decompress(data, max_length=max_length)
            return decompressor.decompress(data, max_length)
        except (zlib.error, OSError, EOFError, ValueError) as e:
            raise MalformedEntryError(
                f"Corrupt compressed data in entry '{header.name}': {e}",
                entry_name=header.name,
                offset=header.offset,
                original_error=e,
            ) from e

    def _read(self, size: int, entry_name: str | None = None, offset: int | None = None) -> bytes:
        try:
            return self._source.read(size)
        except OSError as e:
            raise TruncatedStreamError(
                f"I/O error reading archive {self._source.name}: {e}",
                entry_name=entry_name,
                offset=offset,
                original_error=e,
            ) from e

    def _read_exact(self, size: int, what: str, entry_name: str | None = None, offset: int | None = None) -> bytes:
        data = self._read(size, entry_name=entry_name, offset=offset)
        if len(data) < size:
            raise TruncatedStreamError(
                f"Stream ended inside the {what} ({len(data)} of {size} bytes)",
                entry_name=entry_name,
                offset=offset,
            )
        return data
