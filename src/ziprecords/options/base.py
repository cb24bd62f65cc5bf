"""Base classes for reader options.

Reader options are frozen dataclasses. A running reader holds on to the
instance it was created with, so options are never mutated in place: callers
derive a changed copy with ``create_updated()`` instead.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields, replace
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin giving frozen dataclasses a copy-with-changes method."""

    def create_updated(self, **kwargs: Any) -> Self:
        """Return a copy with the given fields replaced.

        The copy goes through ``__post_init__`` again, so invalid values are
        rejected exactly as they are at construction.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance; ``self`` is unchanged

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class BaseReaderOptions(CloneFrozenMixin):
    """Base class for all record reader options.

    Notes
    -----
    Subclasses declare their settings as frozen dataclass fields with a
    ``help`` entry in the field metadata, which the CLI reuses as argument
    help, and extend ``__post_init__`` for range validation.

    """

    @classmethod
    def field_help(cls, name: str) -> str:
        """Return the ``help`` metadata of field ``name``.

        Raises
        ------
        KeyError
            If the options class has no such field

        """
        for option_field in fields(cls):
            if option_field.name == name:
                return option_field.metadata.get("help", "")
        raise KeyError(name)

    def __post_init__(self) -> None:
        """Validate field values. The base class has none."""
        pass
