#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/source.py
"""Archive byte sources and the filesystem collaborator that opens them.

An ``ArchiveSource`` wraps one already-open binary stream over exactly one
archive. It is read strictly forward, counts the bytes handed to the
decoder, lets the decoder push back bytes it over-read, and is closed
exactly once.

The ``FileSystem`` protocol is the seam to whatever storage layer hands
out streams. ``LocalFileSystem`` covers plain paths; other storage layers
only need ``open`` and ``size``.
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import IO, Protocol, Union, runtime_checkable

from ziprecords.exceptions import SourceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

SourceInput = Union[str, Path, IO[bytes], bytes]


@runtime_checkable
class FileSystem(Protocol):
    """Storage collaborator able to open archives for sequential reading."""

    def open(self, path: str) -> IO[bytes]:
        """Open ``path`` for binary reading."""
        ...

    def size(self, path: str) -> int:
        """Return the length of ``path`` in bytes."""
        ...


class LocalFileSystem:
    """``FileSystem`` implementation over the local disk."""

    def open(self, path: str) -> IO[bytes]:
        return open(path, "rb")

    def size(self, path: str) -> int:
        return os.path.getsize(path)


class ArchiveSource:
    """Forward-only byte stream over one archive.

    Parameters
    ----------
    stream : IO[bytes]
        An open binary stream. Ownership passes to the source, which closes
        it in ``close()``.
    name : str, optional
        Display name used in log messages and errors

    """

    def __init__(self, stream: IO[bytes], name: str | None = None) -> None:
        """Wrap an open binary stream."""
        if not hasattr(stream, "read"):
            raise ValidationError(
                f"Archive source must be a readable binary stream, got {type(stream).__name__}",
                parameter_name="stream",
                parameter_value=stream,
            )
        self._stream = stream
        self._pending = b""
        self._position = 0
        self._closed = False
        self.name = name or getattr(stream, "name", None) or "<stream>"
        if not isinstance(self.name, str):
            self.name = str(self.name)

    @property
    def position(self) -> int:
        """Number of bytes consumed from the archive so far."""
        return self._position

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, returning fewer only at end of stream.

        Raises
        ------
        OSError
            Propagated from the underlying stream.
        ValueError
            If the source has been closed.

        """
        if self._closed:
            raise ValueError(f"I/O operation on closed archive source {self.name}")
        if size <= 0:
            return b""

        parts = []
        remaining = size
        if self._pending:
            head, self._pending = self._pending[:remaining], self._pending[remaining:]
            parts.append(head)
            remaining -= len(head)

        while remaining > 0:
            data = self._stream.read(remaining)
            if not data:
                break
            parts.append(data)
            remaining -= len(data)

        result = b"".join(parts)
        self._position += len(result)
        return result

    def unread(self, data: bytes) -> None:
        """Push ``data`` back so the next ``read`` returns it first."""
        if not data:
            return
        self._pending = data + self._pending
        self._position -= len(data)

    def close(self) -> None:
        """Close the underlying stream.

        Only the first call reaches the stream. The source counts as closed
        even if that call raises.
        """
        if self._closed:
            return
        self._closed = True
        self._pending = b""
        self._stream.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"position={self._position}"
        return f"ArchiveSource({self.name!r}, {state})"


def open_source(input_data: SourceInput, filesystem: FileSystem | None = None) -> ArchiveSource:
    """Resolve user input into an ``ArchiveSource``.

    Parameters
    ----------
    input_data : str, Path, IO[bytes], or bytes
        A path opened through ``filesystem``, an open binary stream, or
        raw archive bytes.
    filesystem : FileSystem, optional
        Collaborator used for path inputs. Defaults to ``LocalFileSystem``.

    Returns
    -------
    ArchiveSource
        A source owning the opened stream.

    Raises
    ------
    SourceUnavailableError
        If a path cannot be opened.
    ValidationError
        If the input type is not supported.

    """
    if isinstance(input_data, (bytes, bytearray)):
        return ArchiveSource(io.BytesIO(bytes(input_data)), name="<bytes>")

    if isinstance(input_data, (str, Path)):
        path = str(input_data)
        fs = filesystem or LocalFileSystem()
        try:
            stream = fs.open(path)
        except OSError as e:
            raise SourceUnavailableError(file_path=path, original_error=e) from e
        logger.debug("Opened archive source %s", path)
        return ArchiveSource(stream, name=path)

    if hasattr(input_data, "read"):
        return ArchiveSource(input_data)

    raise ValidationError(
        f"Unsupported input type: {type(input_data).__name__}",
        parameter_name="input_data",
        parameter_value=input_data,
    )
