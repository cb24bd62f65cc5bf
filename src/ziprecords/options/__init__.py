#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for ziprecords readers.

Options are frozen dataclasses. Use ``create_updated()`` (or the
``create_updated_options`` helper) to derive a modified copy instead of
mutating an instance, so a value captured by a running reader never changes
underneath it.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from ziprecords.options.archive import ArchiveReaderOptions
from ziprecords.options.base import BaseReaderOptions, CloneFrozenMixin


def create_updated_options(options: Any, **kwargs: Any) -> Any:
    """Create a new options instance with updated values.

    Parameters
    ----------
    options : Any
        The original options instance (must be a dataclass)
    **kwargs
        Keyword arguments with the field names and new values to update

    Returns
    -------
    Any
        A new options instance with the updated values

    Examples
    --------
    >>> strict = ArchiveReaderOptions()
    >>> lenient = create_updated_options(strict, lenient=True)
    >>> # strict remains unchanged

    """
    return replace(options, **kwargs)


__all__ = [
    "ArchiveReaderOptions",
    "BaseReaderOptions",
    "CloneFrozenMixin",
    "create_updated_options",
]
