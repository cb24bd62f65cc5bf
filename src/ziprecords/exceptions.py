#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the ziprecords library.

This module defines specialized exception classes for the error conditions
that can occur while reading ZIP archives as record streams. Entry-level
errors are the ones governed by the lenient/strict policy; everything else
propagates regardless of mode.

Exception Hierarchy
-------------------
- ZipRecordsError (base exception)

  - ValidationError (parameter/option validation)
    - InvalidOptionsError (wrong options class for a reader)

  - SourceUnavailableError (the byte stream could not be opened)

  - EntryError (entry-level decode failures, policy-gated)
    - MalformedEntryError (bad local header, size mismatch)
      - EncryptedEntryError (encryption flag set)
      - UnsupportedCompressionError (unknown compression method)
    - TruncatedStreamError (EOF inside an entry)
    - ChecksumMismatchError (CRC-32 mismatch)
    - EntryTooLargeError (payload over the configured ceiling)

  - ReaderStateError (reader used out of order)
    - NoCurrentRecordError (no record produced yet, or reader exhausted)
    - ReaderClosedError (reader used after close)

  - JobFailedError (one or more work units of a local job failed)

"""

from typing import Any


class ZipRecordsError(Exception):
    """Root of every error raised by ziprecords.

    Parameters
    ----------
    message : str
        What went wrong, phrased for a log line
    original_error : Exception, optional
        Lower-level exception (I/O, zlib, bz2) being wrapped

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(ZipRecordsError):
    """A reader option or job setting was rejected.

    ``parameter_name`` and ``parameter_value`` identify the offending setting
    when the caller knows it.
    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class InvalidOptionsError(ValidationError):
    """A reader was constructed with options meant for a different reader.

    Parameters
    ----------
    component_name : str
        Reader class name, used in the message
    expected_type : type
        Options class the reader accepts
    received_type : type
        Options class it was given
    message : str, optional
        Overrides the generated message

    """

    def __init__(
        self,
        component_name: str,
        expected_type: type,
        received_type: type,
        message: str | None = None,
        original_error: Exception | None = None,
    ):
        if message is None:
            message = (
                f"{component_name} expected options of type '{expected_type.__name__}' "
                f"but received '{received_type.__name__}'."
            )
        super().__init__(
            message, parameter_name="options", parameter_value=received_type, original_error=original_error
        )
        self.component_name = component_name
        self.expected_type = expected_type
        self.received_type = received_type


class SourceUnavailableError(ZipRecordsError):
    """Exception raised when the archive byte stream cannot be provided.

    This error always propagates, whatever the lenient setting, and is
    never retried at this layer.

    Parameters
    ----------
    file_path : str, optional
        Path or display name of the archive that could not be opened
    message : str, optional
        Custom error message. If not provided, uses default message
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, file_path: str | None = None, message: str | None = None, original_error: Exception | None = None):
        """Initialize the source unavailable error."""
        if message is None:
            message = f"Archive source unavailable: {file_path}" if file_path else "Archive source unavailable"
        super().__init__(message, original_error=original_error)
        self.file_path = file_path


class EntryError(ZipRecordsError):
    """Base exception for failures while decoding a single archive entry.

    In strict mode these propagate out of ``advance()`` and fail the work
    unit. In lenient mode the reader converts them into end-of-archive.

    Parameters
    ----------
    message : str
        Description of the decode failure
    entry_name : str, optional
        Name of the entry being decoded, when the header got that far
    offset : int, optional
        Stream offset of the entry's local header
    original_error : Exception, optional
        The underlying exception (I/O or decompressor error)

    Attributes
    ----------
    entry_name : str or None
        The entry that failed
    offset : int or None
        Where its local header started

    """

    def __init__(
        self,
        message: str,
        entry_name: str | None = None,
        offset: int | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the entry error."""
        super().__init__(message, original_error=original_error)
        self.entry_name = entry_name
        self.offset = offset


class MalformedEntryError(EntryError):
    """Exception raised for a structurally invalid local entry."""


class EncryptedEntryError(MalformedEntryError):
    """Exception raised when an entry has its encryption flag set.

    Decryption is not supported, so encrypted entries are always rejected.

    Parameters
    ----------
    entry_name : str, optional
        Name of the encrypted entry
    message : str, optional
        Custom error message. If not provided, uses default message

    """

    def __init__(
        self,
        entry_name: str | None = None,
        message: str | None = None,
        offset: int | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the encrypted entry error."""
        if message is None:
            if entry_name:
                message = f"Entry '{entry_name}' is encrypted and cannot be decoded"
            else:
                message = "Encrypted entries are not supported"
        super().__init__(message, entry_name=entry_name, offset=offset, original_error=original_error)


class UnsupportedCompressionError(MalformedEntryError):
    """Exception raised for a compression method the decoder does not implement.

    Parameters
    ----------
    method : int
        The compression method id from the local header
    entry_name : str, optional
        Name of the entry

    """

    def __init__(
        self,
        method: int,
        entry_name: str | None = None,
        message: str | None = None,
        offset: int | None = None,
    ):
        """Initialize the unsupported compression error."""
        if message is None:
            message = f"Unsupported compression method {method}"
            if entry_name:
                message += f" for entry '{entry_name}'"
        super().__init__(message, entry_name=entry_name, offset=offset)
        self.method = method


class TruncatedStreamError(EntryError):
    """Exception raised when the stream ends inside an entry."""


class ChecksumMismatchError(EntryError):
    """Exception raised when decoded bytes fail the CRC-32 check.

    Parameters
    ----------
    expected : int
        CRC-32 recorded in the archive
    actual : int
        CRC-32 computed over the decoded payload
    entry_name : str, optional
        Name of the entry

    """

    def __init__(
        self,
        expected: int,
        actual: int,
        entry_name: str | None = None,
        message: str | None = None,
        offset: int | None = None,
    ):
        """Initialize the checksum mismatch error."""
        if message is None:
            message = f"Bad CRC-32 for entry '{entry_name}': expected {expected:08x}, got {actual:08x}"
        super().__init__(message, entry_name=entry_name, offset=offset)
        self.expected = expected
        self.actual = actual


class EntryTooLargeError(EntryError):
    """Exception raised when an entry's payload exceeds ``max_entry_size``.

    Parameters
    ----------
    limit : int
        The configured ceiling in bytes
    entry_name : str, optional
        Name of the entry

    """

    def __init__(
        self,
        limit: int,
        entry_name: str | None = None,
        message: str | None = None,
        offset: int | None = None,
    ):
        """Initialize the entry too large error."""
        if message is None:
            message = f"Entry '{entry_name}' exceeds the maximum entry size of {limit} bytes"
        super().__init__(message, entry_name=entry_name, offset=offset)
        self.limit = limit


class ReaderStateError(ZipRecordsError):
    """Exception raised when a reader is driven out of protocol order."""


class NoCurrentRecordError(ReaderStateError):
    """Exception raised when the current record is requested without a valid one.

    This happens before the first successful ``advance()`` and after the
    reader reached end-of-archive. It is a usage error and always propagates.

    """

    def __init__(self, message: str | None = None):
        """Initialize the no current record error."""
        super().__init__(message or "No current record: call advance() and check its result first")


class ReaderClosedError(ReaderStateError):
    """Exception raised when a closed reader is asked to advance."""

    def __init__(self, message: str | None = None):
        """Initialize the reader closed error."""
        super().__init__(message or "Reader has been closed")


class JobFailedError(ZipRecordsError):
    """Exception raised when a local job finishes with failed work units.

    Parameters
    ----------
    failed_units : list
        The per-unit results that failed
    message : str, optional
        Custom error message

    """

    def __init__(self, failed_units: list[Any], message: str | None = None):
        """Initialize the job failed error."""
        if message is None:
            message = f"{len(failed_units)} work unit(s) failed"
        super().__init__(message)
        self.failed_units = failed_units
