#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/ziprecords/progress.py
"""Progress callback system for archive record reading.

This module provides a standardized way to report reading progress to
embedders. The reader's own ``progress()`` value is a coarse 0.0/1.0
signal because archives are consumed as a forward-only stream; callbacks
give finer feedback, one event per decoded entry.

Examples
--------
    >>> from ziprecords import ArchiveRecordReader
    >>> from ziprecords.progress import ProgressEvent
    >>>
    >>> def on_progress(event: ProgressEvent):
    ...     print(event)
    >>>
    >>> reader = ArchiveRecordReader(progress_callback=on_progress)

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

EventType = Literal["started", "item_done", "finished", "error"]


@dataclass
class ProgressEvent:
    """Progress event emitted while reading an archive.

    Parameters
    ----------
    event_type : EventType
        Type of progress event:

        - "started": the reader was bound to a source
        - "item_done": one entry was decoded into a record.
            metadata carries "entry_name" and "size".
        - "finished": the archive is exhausted
        - "error": an entry failed to decode. metadata carries "error",
            "error_type" and "suppressed" (True when lenient mode turned
            the failure into end-of-archive).

    message : str
        Human-readable description of the event
    current : int, default 0
        Number of records produced so far
    total : int, default 0
        Total items, 0 when unknown (always the case for a forward-only archive)
    metadata : dict, default empty
        Additional event-specific information

    """

    event_type: EventType
    message: str
    current: int = 0
    total: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Return human-readable string representation.

        Returns
        -------
        str
            Formatted event description

        """
        progress = f"({self.current}/{self.total})" if self.total > 0 else ""
        return f"[{self.event_type.upper()}] {self.message} {progress}".strip()


# Type alias for progress callback functions
ProgressCallback = Callable[[ProgressEvent], None]
"""Type alias for progress callback functions.

Callbacks should not raise; if they do, the exception is logged and
reading continues.
"""
