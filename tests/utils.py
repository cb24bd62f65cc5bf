"""Test utilities for the ziprecords test suite.

Helpers build ZIP archives in memory with the standard ``zipfile`` module
and derive damaged variants (encrypted flag, corrupted payload, truncated
stream) by patching the bytes of a well-formed archive.
"""

import bz2
import io
import struct
import zipfile
import zlib

LOCAL_HEADER_LENGTH = 30


class UnseekableWriter:
    """Write-only sink that forces ``zipfile`` to emit data descriptors."""

    def __init__(self):
        self.buffer = io.BytesIO()

    def write(self, data):
        return self.buffer.write(data)

    def flush(self):
        pass

    def getvalue(self):
        return self.buffer.getvalue()


def create_test_zip(files, compression=zipfile.ZIP_DEFLATED):
    """Create a ZIP archive with the given files.

    Parameters
    ----------
    files : dict[str, bytes] or list[tuple[str, bytes]]
        Mapping of entry names to content bytes, in archive order

    Returns
    -------
    bytes
        ZIP archive as bytes

    """
    items = files.items() if isinstance(files, dict) else files
    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", compression) as zf:
        for name, content in items:
            zf.writestr(name, content)
    return zip_buffer.getvalue()


def create_streamed_zip(files, force_zip64=False):
    """Create a deflated archive written to an unseekable sink.

    Every entry carries flag bit 3 with zero sizes in its local header and
    a trailing data descriptor.
    """
    sink = UnseekableWriter()
    with zipfile.ZipFile(sink, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            with zf.open(name, "w", force_zip64=force_zip64) as dest:
                dest.write(content)
    return sink.getvalue()


def create_zero_bomb_zip(name, size, method=zipfile.ZIP_BZIP2, block=1 << 20):
    """Create a one-entry archive whose body expands to ``size`` zero bytes.

    The body is compressed block by block so the expanded payload never
    exists in memory. Only the local header and body are written.
    """
    if method == zipfile.ZIP_BZIP2:
        compressor = bz2.BZ2Compressor()
    else:
        compressor = zlib.compressobj(9, zlib.DEFLATED, -15)
    zeros = bytes(block)
    body = bytearray()
    crc = 0
    for _ in range(size // block):
        body += compressor.compress(zeros)
        crc = zlib.crc32(zeros, crc)
    body += compressor.flush()

    raw_name = name.encode("ascii")
    header = struct.pack(
        "<4sHHHHHIIIHH", b"PK\x03\x04", 46, 0, method, 0, 0, crc, len(body), size, len(raw_name), 0
    )
    return header + raw_name + bytes(body)


def create_zip64_zip(files):
    """Create an archive whose local headers use ZIP64 size markers."""
    zip_buffer = io.BytesIO()
    with zipfile.ZipFile(zip_buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, content in files.items():
            with zf.open(name, "w", force_zip64=True) as dest:
                dest.write(content)
    return zip_buffer.getvalue()


def header_offset(data, index):
    """Offset of the local header of entry ``index``, from the central directory."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return zf.infolist()[index].header_offset


def body_offset(data, index):
    """Offset of the first body byte of entry ``index``."""
    offset = header_offset(data, index)
    name_length, extra_length = struct.unpack_from("<HH", data, offset + 26)
    return offset + LOCAL_HEADER_LENGTH + name_length + extra_length


def set_entry_flags(data, index, flags):
    """Return a copy of ``data`` with extra general-purpose flag bits set on entry ``index``."""
    patched = bytearray(data)
    offset = header_offset(data, index) + 6
    (current,) = struct.unpack_from("<H", patched, offset)
    struct.pack_into("<H", patched, offset, current | flags)
    return bytes(patched)


def set_entry_method(data, index, method):
    """Return a copy of ``data`` with the compression method of entry ``index`` replaced."""
    patched = bytearray(data)
    struct.pack_into("<H", patched, header_offset(data, index) + 8, method)
    return bytes(patched)


def corrupt_entry_body(data, index, position=0):
    """Return a copy of ``data`` with one body byte of entry ``index`` inverted."""
    patched = bytearray(data)
    patched[body_offset(data, index) + position] ^= 0xFF
    return bytes(patched)


def truncate_in_entry_body(data, index, keep=1):
    """Cut ``data`` ``keep`` bytes into the body of entry ``index``."""
    return data[: body_offset(data, index) + keep]


class FailingCloseStream(io.BytesIO):
    """BytesIO whose ``close`` always raises."""

    def __init__(self, data=b""):
        super().__init__(data)
        self.close_calls = 0

    def close(self):
        self.close_calls += 1
        raise OSError("simulated close failure")


class FailingReadStream(io.BytesIO):
    """BytesIO that raises once ``fail_after`` bytes have been read."""

    def __init__(self, data, fail_after):
        super().__init__(data)
        self.fail_after = fail_after

    def read(self, size=-1):
        if self.tell() >= self.fail_after:
            raise OSError("simulated read failure")
        if size is None or size < 0:
            size = self.fail_after - self.tell()
        return super().read(min(size, self.fail_after - self.tell()))


class InMemoryFileSystem:
    """FileSystem collaborator backed by a dict of path -> bytes."""

    def __init__(self, files):
        self.files = dict(files)
        self.opened = []

    def open(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        self.opened.append(path)
        return io.BytesIO(self.files[path])

    def size(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        return len(self.files[path])
