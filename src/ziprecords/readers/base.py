#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/readers/base.py
"""Base class for pull-based record readers.

This module defines the contract a batch execution engine drives: bind the
reader to one work unit with ``initialize()``, call ``advance()`` until it
returns False, fetch each record with ``current_record()``, poll
``progress()`` and always finish with ``close()``.

Subclasses also get Python iteration and context management for free::

    with SomeReader() as reader:
        reader.initialize(source)
        for record in reader:
            ...

"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional

from ziprecords.exceptions import InvalidOptionsError
from ziprecords.options.base import BaseReaderOptions
from ziprecords.progress import ProgressCallback, ProgressEvent
from ziprecords.records import Record

logger = logging.getLogger(__name__)


class RecordReader(ABC):
    """Abstract base class for record readers.

    Parameters
    ----------
    options : BaseReaderOptions or None, default = None
        Format-specific reader options
    progress_callback : ProgressCallback or None, default = None
        Optional callback for progress updates while reading

    Notes
    -----
    Readers are single-owner objects: one worker drives one reader. They do
    no internal locking and must not be shared between threads.

    """

    def __init__(self, options: BaseReaderOptions | None = None, progress_callback: Optional[ProgressCallback] = None):
        """Initialize the reader with optional configuration."""
        self.options: BaseReaderOptions | None = options
        self.progress_callback: Optional[ProgressCallback] = progress_callback

    @staticmethod
    def _validate_options_type(options: BaseReaderOptions | None, expected_type: type, reader_name: str) -> None:
        """Reject an options object built for some other reader.

        Raises
        ------
        InvalidOptionsError
            If ``options`` is set but is not an ``expected_type``

        """
        if options is not None and not isinstance(options, expected_type):
            raise InvalidOptionsError(
                component_name=reader_name,
                expected_type=expected_type,
                received_type=type(options),
            )

    @abstractmethod
    def initialize(self, source: Any) -> None:
        """Bind the reader to the input of one work unit."""
        raise NotImplementedError

    @abstractmethod
    def advance(self) -> bool:
        """Move to the next record.

        Returns
        -------
        bool
            True if a new record is available through ``current_record()``,
            False once the input is exhausted.

        """
        raise NotImplementedError

    @abstractmethod
    def current_record(self) -> Record:
        """Return the record produced by the most recent successful ``advance()``."""
        raise NotImplementedError

    @abstractmethod
    def progress(self) -> float:
        """Return the fraction of input consumed, between 0.0 and 1.0."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release every resource held by the reader. Must be idempotent."""
        raise NotImplementedError

    def __iter__(self) -> Iterator[Record]:
        """Yield records until the input is exhausted."""
        while self.advance():
            yield self.current_record()

    def __enter__(self) -> RecordReader:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _emit_progress(self, event_type: str, message: str, current: int = 0, total: int = 0, **metadata: Any) -> None:
        """Report reader progress to ``progress_callback``, if one was given.

        ``current`` and ``total`` count entries. Extra keyword arguments land in
        the event's ``metadata``. A callback that raises is logged and
        otherwise ignored; it never fails the read.
        """
        callback = self.progress_callback
        if callback is None:
            return

        event = ProgressEvent(
            event_type=event_type,  # type: ignore[arg-type]
            message=message,
            current=current,
            total=total,
            metadata=metadata,
        )
        try:
            callback(event)
        except Exception:
            logger.warning("Progress callback failed on %s event", event_type, exc_info=True)
